"""
autoprop.events  ──  decorators for record lifecycle hooks
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Set, Type

from .core.naming import Verb

if TYPE_CHECKING:
    from .core.record import Record


@dataclass(frozen=True)
class Change:
    """One applied mutation. `new` holds the added item, `old` the removed one."""

    instance: Any
    verb: Verb
    property: str
    old: Any = None
    new: Any = None


class EventRegistry:
    """Central registry for event handlers"""

    def __init__(self):
        # Maps event type -> class name -> set of handlers
        self._handlers: Dict[str, Dict[str, Set[Callable]]] = {
            "create": defaultdict(set),
            "change": defaultdict(set),
        }

    def register(
        self,
        event_type: str,
        record_classes: tuple[Type[Record], ...],
        handler: Callable,
    ) -> None:
        """Register a handler for specific record classes"""
        for cls in record_classes:
            self._handlers[event_type][cls.__name__].add(handler)

    def emit(self, event_type: str, instance: Record, payload: Any) -> None:
        """Emit event to all matching handlers"""
        handlers = set()

        # Also check parent classes
        for cls in type(instance).__mro__:
            handlers.update(self._handlers[event_type].get(cls.__name__, ()))

        for handler in handlers:
            handler(payload)

    def clear(self) -> None:
        for by_class in self._handlers.values():
            by_class.clear()


# Global registry instance
_registry = EventRegistry()


class OnDecorator:
    """Namespace for event decorators"""

    @staticmethod
    def create(*record_classes: Type[Record]) -> Callable:
        """Decorator for handling record creation events"""

        def decorator(func: Callable) -> Callable:
            _registry.register("create", record_classes, func)
            return func

        return decorator

    @staticmethod
    def change(*record_classes: Type[Record]) -> Callable:
        """Decorator for handling applied mutations; the handler gets a `Change`."""

        def decorator(func: Callable) -> Callable:
            _registry.register("change", record_classes, func)
            return func

        return decorator


# Export the decorator interface
on = OnDecorator()


# Hook into Record lifecycle
def emit_create(instance: Record) -> None:
    """Emit create event for new instances"""
    _registry.emit("create", instance, instance)


def emit_change(change: Change) -> None:
    """Emit change event for an applied mutation"""
    _registry.emit("change", change.instance, change)
