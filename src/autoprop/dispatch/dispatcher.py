"""
Per-type dispatch table: (verb, property) -> operation.

Built once when a Record subclass is created. `accessor` wraps one table entry
as the method installed on the class (`getTitle`, `addTag`, ...); `invoke`
serves calls by name.

Every mutator validates before it writes, applies exactly one mutation,
synchronizes associations, emits a `Change` and returns the record.
"""

import functools
import logging
from contextvars import ContextVar
from typing import Any, Callable, Dict, FrozenSet, Mapping, Tuple

from ..associations.sync import synchronizer
from ..containers.managers import manager_for
from ..core.access import AccessResolver
from ..core.naming import Verb, method_name, parse_method_name
from ..core.properties import PropertyMetadata
from ..core.validation import ConstraintValidator
from ..errors import ArityMismatch
from ..events import Change, emit_change

logger = logging.getLogger(__name__)

Operation = Callable[[Any, Tuple[Any, ...]], Any]

# (id(record), method) pairs whose explicit method is currently running
_running: ContextVar[FrozenSet[Tuple[int, str]]] = ContextVar(
    "autoprop_explicit_running", default=frozenset()
)


def _check_arity(invoked: str, expected: int, args: Tuple[Any, ...]) -> None:
    if len(args) != expected:
        raise ArityMismatch(
            f"{invoked}() takes {expected} argument(s) but {len(args)} were given"
        )


class Dispatcher:
    def __init__(self, model_cls: type, properties: Mapping[str, PropertyMetadata]):
        self.model = model_cls
        self.properties: Dict[str, PropertyMetadata] = dict(properties)
        self.resolver = AccessResolver(self.properties)
        self.validator = ConstraintValidator(model_cls)
        self.table: Dict[Tuple[Verb, str], Operation] = {
            (verb, meta.name): self._operation(verb, meta)
            for meta in self.properties.values()
            for verb in meta.access
        }

    def method_names(self) -> Dict[str, Tuple[Verb, str]]:
        return {
            method_name(verb, self.properties[name].stem(verb)): (verb, name)
            for verb, name in self.table
        }

    # ---- entry points ------------------------------------------------------
    def invoke(self, record: Any, name: str, args: Tuple[Any, ...]) -> Any:
        """Call accessor `name` on `record` as an outside caller would.

        A method written explicitly on the class wins. Called from inside that
        same method, the generated operation runs instead.
        """
        method = getattr(type(record), name, None)
        if hasattr(method, "__autoprop_explicit__") and (id(record), name) not in _running.get():
            return method(record, *args)
        verb, target = parse_method_name(name)
        resolved = self.resolver.resolve(verb, target)
        return self.table[(resolved.verb, resolved.property.name)](record, tuple(args))

    def call(self, record: Any, verb: Verb, name: str, args: Tuple[Any, ...]) -> Any:
        """Run `verb` on property `name` (not item name) through its accessor."""
        meta = self.resolver.property(verb, name)
        return self.invoke(record, method_name(verb, meta.stem(verb)), args)

    def bind(self, record: Any) -> None:
        """Link associated values a record was constructed with."""
        for meta in self.properties.values():
            if meta.association is None:
                continue
            value = record.__dict__[meta.name]
            if meta.is_collection:
                if not value:
                    continue
                object.__setattr__(record, meta.name, meta.collection.empty())  # type: ignore[union-attr]
                for item in value:
                    self._add(meta, record, (item,), "bind")
            elif value is not None:
                object.__setattr__(record, meta.name, None)
                self._assign(meta, record, value)

    # ---- operations --------------------------------------------------------
    def _operation(self, verb: Verb, meta: PropertyMetadata) -> Operation:
        handler = {
            Verb.GET: self._get,
            Verb.IS: self._get,
            Verb.SET: self._set,
            Verb.ADD: self._add,
            Verb.REMOVE: self._remove,
        }[verb]
        invoked = method_name(verb, meta.stem(verb))

        def operation(record: Any, args: Tuple[Any, ...]) -> Any:
            logger.debug("%s.%s%r", type(record).__name__, invoked, args)
            return handler(meta, record, args, invoked)

        return operation

    def _get(self, meta: PropertyMetadata, record: Any, args: Tuple[Any, ...], invoked: str) -> Any:
        _check_arity(invoked, 0, args)
        value = record.__dict__[meta.name]
        if meta.is_collection:
            return meta.collection.copy(value)  # type: ignore[union-attr]
        return value

    def _set(self, meta: PropertyMetadata, record: Any, args: Tuple[Any, ...], invoked: str) -> Any:
        _check_arity(invoked, 1, args)
        value = self.validator.validate(meta.name, args[0])
        if meta.is_collection and meta.association is not None:
            self._replace(meta, record, value)
        else:
            self._assign(meta, record, value)
        return record

    def _assign(self, meta: PropertyMetadata, record: Any, value: Any) -> None:
        old = record.__dict__[meta.name]
        if old is value or old == value:
            logger.debug("%s.%s unchanged", type(record).__name__, meta.name)
            return
        if meta.association is not None:
            synchronizer.precheck(
                record,
                meta,
                linked=[value] if value is not None else [],
                unlinked=[old] if old is not None else [],
            )
        object.__setattr__(record, meta.name, value)
        if meta.association is not None:
            synchronizer.after_set(record, meta, old, value)
        emit_change(Change(record, Verb.SET, meta.name, old=old, new=value))

    def _replace(self, meta: PropertyMetadata, record: Any, items: Any) -> None:
        current = list(record.__dict__[meta.name])
        synchronizer.precheck(record, meta, linked=items, unlinked=current)
        for item in current:
            self._per_item(meta, record, Verb.REMOVE, item)
        for item in items:
            self._per_item(meta, record, Verb.ADD, item)

    def _per_item(self, meta: PropertyMetadata, record: Any, verb: Verb, item: Any) -> None:
        # through the record's own remove/add accessor when it has one
        name = method_name(verb, meta.stem(verb))
        if callable(getattr(type(record), name, None)):
            getattr(record, name)(item)
        elif verb is Verb.ADD:
            self._add(meta, record, (item,), name)
        else:
            self._remove(meta, record, (item,), name)

    def _add(self, meta: PropertyMetadata, record: Any, args: Tuple[Any, ...], invoked: str) -> Any:
        manager = manager_for(meta.collection.kind)  # type: ignore[union-attr]
        _check_arity(invoked, manager.arity[Verb.ADD], args)
        if meta.association is not None:
            synchronizer.precheck(record, meta, linked=args)
        manager.add(record.__dict__[meta.name], *args)
        if meta.association is not None:
            synchronizer.after_add(record, meta, args[0])
        item = args[0] if len(args) == 1 else args
        emit_change(Change(record, Verb.ADD, meta.name, new=item))
        return record

    def _remove(self, meta: PropertyMetadata, record: Any, args: Tuple[Any, ...], invoked: str) -> Any:
        manager = manager_for(meta.collection.kind)  # type: ignore[union-attr]
        _check_arity(invoked, manager.arity[Verb.REMOVE], args)
        container = record.__dict__[meta.name]
        if meta.association is not None and manager.contains(container, args[0]):
            synchronizer.precheck(record, meta, unlinked=args)
        manager.remove(container, *args)
        if meta.association is not None:
            synchronizer.after_remove(record, meta, args[0])
        emit_change(Change(record, Verb.REMOVE, meta.name, old=args[0]))
        return record


def accessor(dispatcher: Dispatcher, verb: Verb, name: str, invoked: str) -> Callable[..., Any]:
    """Wrap the table entry for (verb, name) as a method called `invoked`."""
    operation = dispatcher.table[(verb, name)]

    def inner(self, *args):
        return operation(self, args)

    inner.__name__ = invoked
    inner.__qualname__ = f"{dispatcher.model.__qualname__}.{invoked}"
    inner.__doc__ = f"Generated `{verb.value}` accessor for {name!r}."
    inner.__autoprop_accessor__ = (verb, name)  # type: ignore[attr-defined]
    return inner


def explicit(func: Callable[..., Any], invoked: str) -> Callable[..., Any]:
    """Mark a hand-written accessor so `invoke` from inside it reaches the generated one."""

    @functools.wraps(func)
    def inner(self, *args, **kwargs):
        token = _running.set(_running.get() | {(id(self), invoked)})
        try:
            return func(self, *args, **kwargs)
        finally:
            _running.reset(token)

    inner.__autoprop_explicit__ = invoked  # type: ignore[attr-defined]
    return inner
