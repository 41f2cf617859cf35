"""
Per-property metadata, and the `Annotated` markers it is read from.

    class Post(Record):
        title: Annotated[str, Access("get", "set")] = ""
        tags: Annotated[list[str], Access("get"), ListBehavior("tag")] = []

* Markers are plain frozen dataclasses so pydantic ignores them when it
  builds the field schema.
* `collect_properties` turns them into immutable `PropertyMetadata` records,
  once per record type.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from ..errors import DefinitionError
from .naming import Verb

logger = logging.getLogger(__name__)


class CollectionKind(str, Enum):
    LIST = "list"
    MAP = "map"
    SET = "set"


CONTAINER_TYPES: dict[CollectionKind, type] = {
    CollectionKind.LIST: list,
    CollectionKind.MAP: dict,
    CollectionKind.SET: set,
}


# --------------------------------------------------------------------------- #
# declaration markers
# --------------------------------------------------------------------------- #
class Marker:
    """Base for every autoprop annotation marker."""


@dataclass(frozen=True, init=False)
class Access(Marker):
    """Verbs granted on a property: `Access("get", "set")`."""

    verbs: frozenset[Verb]

    def __init__(self, *verbs: str | Verb):
        try:
            granted = frozenset(Verb(v) for v in verbs)
        except ValueError as exc:
            raise DefinitionError(f"unknown verb in Access{verbs!r}") from exc
        object.__setattr__(self, "verbs", granted)


@dataclass(frozen=True)
class CollectionMarker(Marker):
    item_name: str | None = None
    methods: tuple[str, ...] = ("add", "remove")

    kind: ClassVar[CollectionKind]


class ListBehavior(CollectionMarker):
    kind = CollectionKind.LIST


class MapBehavior(CollectionMarker):
    kind = CollectionKind.MAP


class SetBehavior(CollectionMarker):
    kind = CollectionKind.SET


@dataclass(frozen=True)
class Associated(Marker):
    """Keep this property in sync with `reciprocal` on the `target` record type."""

    target: str | type
    reciprocal: str


# --------------------------------------------------------------------------- #
# metadata records
# --------------------------------------------------------------------------- #
class CollectionBehavior(BaseModel):
    model_config = {"frozen": True}

    kind: CollectionKind
    item_name: str

    def empty(self) -> Any:
        return CONTAINER_TYPES[self.kind]()

    def copy(self, container: Any) -> Any:
        return CONTAINER_TYPES[self.kind](container)


class Association(BaseModel):
    model_config = {"frozen": True}

    target: str
    reciprocal: str
    module: str | None = None  # where `target` is looked up first


class PropertyMetadata(BaseModel):
    model_config = {"frozen": True}

    name: str
    access: frozenset[Verb]
    collection: CollectionBehavior | None = None
    association: Association | None = None

    @property
    def is_collection(self) -> bool:
        return self.collection is not None

    def allows(self, verb: Verb) -> bool:
        return verb in self.access

    def stem(self, verb: Verb) -> str:
        """Name fragment used in the accessor for `verb`."""
        if verb.on_items and self.collection is not None:
            return self.collection.item_name
        return self.name


# --------------------------------------------------------------------------- #
# collection from a pydantic model
# --------------------------------------------------------------------------- #
def _metadata_for(
    owner: type[BaseModel], name: str, field: FieldInfo
) -> PropertyMetadata | None:
    markers = [m for m in field.metadata if isinstance(m, Marker)]
    if not markers:
        return None

    access: set[Verb] = set()
    collection: CollectionBehavior | None = None
    association: Association | None = None

    for marker in markers:
        if isinstance(marker, Access):
            access |= marker.verbs
        elif isinstance(marker, CollectionMarker):
            if collection is not None:
                raise DefinitionError(
                    f"{owner.__name__}.{name} declares more than one collection behavior"
                )
            collection = CollectionBehavior(
                kind=marker.kind, item_name=marker.item_name or name
            )
            try:
                access |= {Verb(m) for m in marker.methods}
            except ValueError as exc:
                raise DefinitionError(
                    f"{owner.__name__}.{name}: unknown collection method in {marker.methods!r}"
                ) from exc
        elif isinstance(marker, Associated):
            target = marker.target
            if isinstance(target, type):
                association = Association(
                    target=target.__name__,
                    reciprocal=marker.reciprocal,
                    module=target.__module__,
                )
            else:
                association = Association(
                    target=target, reciprocal=marker.reciprocal, module=owner.__module__
                )

    if collection is None and access & {Verb.ADD, Verb.REMOVE}:
        raise DefinitionError(
            f"{owner.__name__}.{name} grants add/remove without a collection behavior"
        )
    if collection is not None:
        expected = CONTAINER_TYPES[collection.kind]
        annotation = field.annotation
        if annotation is not expected and get_origin(annotation) is not expected:
            raise DefinitionError(
                f"{owner.__name__}.{name} is declared as a {collection.kind.value} "
                f"but annotated {annotation!r}"
            )
        if association is not None and collection.kind is CollectionKind.MAP:
            raise DefinitionError(f"{owner.__name__}.{name}: maps cannot be associated")

    return PropertyMetadata(
        name=name,
        access=frozenset(access),
        collection=collection,
        association=association,
    )


def collect_properties(model_cls: type[BaseModel]) -> dict[str, PropertyMetadata]:
    """Build the metadata mapping for every marked field of `model_cls`."""
    properties: dict[str, PropertyMetadata] = {}
    item_owners: dict[str, str] = {}

    for name, field in model_cls.model_fields.items():
        meta = _metadata_for(model_cls, name, field)
        if meta is None:
            continue
        if meta.collection is not None:
            item = meta.collection.item_name
            if item in item_owners:
                raise DefinitionError(
                    f"{model_cls.__name__}: item name {item!r} used by both "
                    f"{item_owners[item]!r} and {name!r}"
                )
            item_owners[item] = name
        properties[name] = meta

    logger.debug(
        "collected %d properties on %s: %s",
        len(properties),
        model_cls.__name__,
        ", ".join(properties),
    )
    return properties
