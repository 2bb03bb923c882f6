"""Generic CRUD resource controllers.

:class:`ResourceController` manages one entity collection through an
:class:`~crudkit.client.ApiClient`, exposing ``list``/``create``/``update``/
``remove`` with consistent ``items``/``loading``/``error`` state.  It knows
nothing about the entity shape beyond what its :class:`Codec` provides.
"""

from crudkit.resource.codec import Codec, DictCodec, ModelCodec
from crudkit.resource.controller import CollectionState, Phase, ResourceController

__all__ = [
    "Codec",
    "CollectionState",
    "DictCodec",
    "ModelCodec",
    "Phase",
    "ResourceController",
]
