"""
Public surface for autoprop.
Subclass `Record`, declare properties with `Annotated` markers, and call the
generated `get*/is*/set*/add*/remove*` accessors.
"""

from .core.naming import Verb
from .core.properties import (
    Access,
    Associated,
    ListBehavior,
    MapBehavior,
    PropertyMetadata,
    SetBehavior,
)
from .core.record import Record
from .errors import (
    ArityMismatch,
    AutoPropError,
    DefinitionError,
    InvalidValue,
    UnknownMethod,
)
from .events import Change, on
from .runtime import AutoProp

__all__ = [
    "Access",
    "ArityMismatch",
    "Associated",
    "AutoProp",
    "AutoPropError",
    "Change",
    "DefinitionError",
    "InvalidValue",
    "ListBehavior",
    "MapBehavior",
    "PropertyMetadata",
    "Record",
    "SetBehavior",
    "UnknownMethod",
    "Verb",
    "on",
]
