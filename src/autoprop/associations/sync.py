"""
Bidirectional associations.

* `AssociationRegistry` records every associated property, keyed by
  (record type, property name), and resolves the reciprocal side.
* `Synchronizer` mirrors an accepted mutation onto the reciprocal property of
  the related record by calling that record's own accessor, the same method an
  outside caller would use (explicitly written ones included).

A reciprocal call is only issued when the other side does not already reflect
the link, so the nested call made by the other side finds nothing to do and
the chain stops after one hop.
"""

from __future__ import annotations

import logging
import sys
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Dict, Iterable, NamedTuple, Optional, Set, Tuple

from ..containers.managers import manager_for
from ..core.naming import Verb, method_name
from ..core.properties import Association, PropertyMetadata
from ..errors import DefinitionError, InvalidValue, UnknownMethod
from ..runtime import AutoProp

if TYPE_CHECKING:
    from ..dispatch.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


def dispatcher_of(record: Any) -> "Dispatcher":
    dispatcher = getattr(type(record), "__autoprop_dispatcher__", None)
    if dispatcher is None:
        raise InvalidValue(f"{record!r} is not a record and cannot be associated")
    return dispatcher


class AssociationRegistry:
    """Central registry of associated properties."""

    def __init__(self):
        self._links: Dict[Tuple[type, str], PropertyMetadata] = {}
        # class name -> classes with that name, for string targets
        self._class_map: Dict[str, Set[type]] = defaultdict(set)
        self._reciprocals: Dict[Tuple[type, str, str], PropertyMetadata] = {}

    def register(self, record_cls: type, properties: Dict[str, PropertyMetadata]) -> None:
        self._class_map[record_cls.__name__].add(record_cls)
        for meta in properties.values():
            if meta.association is not None:
                self._links[(record_cls, meta.name)] = meta
                logger.debug(
                    "registered link %s.%s <-> %s.%s",
                    record_cls.__name__,
                    meta.name,
                    meta.association.target,
                    meta.association.reciprocal,
                )

    def resolve_target(self, association: Association) -> type:
        module = sys.modules.get(association.module or "")
        found = getattr(module, association.target, None) if module else None
        if isinstance(found, type):
            return found
        candidates = self._class_map.get(association.target, set())
        if len(candidates) != 1:
            raise DefinitionError(
                f"cannot resolve association target {association.target!r} "
                f"({len(candidates)} candidates)"
            )
        return next(iter(candidates))

    def reciprocal(self, related_cls: type, meta: PropertyMetadata) -> PropertyMetadata:
        """The property on `related_cls` that `meta` is linked to."""
        if meta.association is None:
            raise DefinitionError(f"{meta.name!r} is not an associated property")
        key = (related_cls, meta.association.reciprocal, meta.name)
        recip = self._reciprocals.get(key)
        if recip is not None:
            return recip

        properties = getattr(related_cls, "__autoprop_properties__", {})
        recip = properties.get(meta.association.reciprocal)
        if (
            recip is None
            or recip.association is None
            or recip.association.reciprocal != meta.name
        ):
            raise DefinitionError(
                f"{related_cls.__name__}.{meta.association.reciprocal} is not "
                f"associated back to {meta.name!r}"
            )
        self._reciprocals[key] = recip
        return recip

    def verify(self) -> None:
        """Check every registered link against its target type."""
        for (owner, name), meta in list(self._links.items()):
            target = self.resolve_target(meta.association)  # type: ignore[arg-type]
            recip = self.reciprocal(target, meta)
            if not issubclass(owner, self.resolve_target(recip.association)):  # type: ignore[arg-type]
                raise DefinitionError(
                    f"{target.__name__}.{recip.name} points at "
                    f"{recip.association.target}, not {owner.__name__}"  # type: ignore[union-attr]
                )


class ReciprocalCall(NamedTuple):
    """One accessor call on a related record: `related.<method>(value)`."""

    related: Any
    property: PropertyMetadata
    verb: Verb
    value: Any

    @property
    def method(self) -> str:
        return method_name(self.verb, self.property.stem(self.verb))


class Synchronizer:
    def __init__(self, registry: AssociationRegistry):
        self.registry = registry

    def pending(
        self, record: Any, meta: PropertyMetadata, related: Any, linking: bool
    ) -> Optional[ReciprocalCall]:
        """The call that makes `related` agree with `record`, or None if it already does."""
        dispatcher_of(related)
        recip = self.registry.reciprocal(type(related), meta)
        current = related.__dict__[recip.name]
        if recip.is_collection:
            kind = recip.collection.kind  # type: ignore[union-attr]
            if manager_for(kind).contains(current, record) == linking:
                return None
            return ReciprocalCall(related, recip, Verb.ADD if linking else Verb.REMOVE, record)
        if (current is record) == linking:
            return None
        return ReciprocalCall(related, recip, Verb.SET, record if linking else None)

    # ---- before mutation ---------------------------------------------------
    def precheck(
        self,
        record: Any,
        meta: PropertyMetadata,
        linked: Iterable[Any] = (),
        unlinked: Iterable[Any] = (),
    ) -> None:
        """Raise now if a reciprocal call that the mutation triggers would fail.

        Covers the accessor being present on the related record, a set value
        being accepted there, and the record displaced by that set.
        """
        if not AutoProp.settings().precheck_associations:
            return
        for related, linking in [(r, True) for r in linked] + [(r, False) for r in unlinked]:
            self._check(record, meta, self.pending(record, meta, related, linking))

    def _check(
        self, record: Any, meta: PropertyMetadata, call: Optional[ReciprocalCall], displaced: bool = True
    ) -> None:
        if call is None:
            return
        related_cls = type(call.related)
        if not callable(getattr(related_cls, call.method, None)):
            raise UnknownMethod(
                call.method,
                f"needed to keep {type(record).__name__}.{meta.name} in sync",
            )
        if call.verb is not Verb.SET:
            return
        if not dispatcher_of(call.related).validator.accepts(call.property.name, call.value):
            raise InvalidValue(
                f"{related_cls.__name__}.{call.property.name} would reject {call.value!r}; "
                f"{type(record).__name__}.{meta.name} left unchanged"
            )
        # the record the set pushes out gets unlinked in turn
        previous = call.related.__dict__[call.property.name]
        if displaced and call.value is not None and previous is not None:
            self._check(
                call.related,
                call.property,
                self.pending(call.related, call.property, previous, linking=False),
                displaced=False,
            )

    # ---- after mutation ----------------------------------------------------
    def after_set(self, record: Any, meta: PropertyMetadata, old: Any, new: Any) -> None:
        if old is not None:
            self.unlink(record, meta, old)
        if new is not None:
            self.link(record, meta, new)

    def after_add(self, record: Any, meta: PropertyMetadata, item: Any) -> None:
        self.link(record, meta, item)

    def after_remove(self, record: Any, meta: PropertyMetadata, item: Any) -> None:
        self.unlink(record, meta, item)

    def link(self, record: Any, meta: PropertyMetadata, related: Any) -> None:
        self._apply(record, meta, self.pending(record, meta, related, linking=True))

    def unlink(self, record: Any, meta: PropertyMetadata, related: Any) -> None:
        self._apply(record, meta, self.pending(record, meta, related, linking=False))

    def _apply(self, record: Any, meta: PropertyMetadata, call: Optional[ReciprocalCall]) -> None:
        if call is None:
            return
        logger.debug(
            "sync %s.%s -> %s.%s(%r)",
            type(record).__name__,
            meta.name,
            type(call.related).__name__,
            call.method,
            call.value,
        )
        getattr(call.related, call.method)(call.value)


# Global registry instance
registry = AssociationRegistry()
synchronizer = Synchronizer(registry)
