"""
Container strategies behind `add*` / `remove*`.

Every operation mutates the container in place and returns nothing.
Removing something absent or re-adding something present is a no-op, never an
error; association sync relies on that to stop after one hop.
"""

from typing import Any

from ..core.naming import Verb
from ..core.properties import CollectionKind


class ListManager:
    """Ordered, duplicates allowed."""

    arity = {Verb.ADD: 1, Verb.REMOVE: 1}

    @staticmethod
    def add(container: list, item: Any) -> None:
        container.append(item)

    @staticmethod
    def remove(container: list, item: Any) -> None:
        if item in container:
            container.remove(item)  # first equal element only

    @staticmethod
    def contains(container: list, item: Any) -> bool:
        return item in container


class SetManager:
    arity = {Verb.ADD: 1, Verb.REMOVE: 1}

    @staticmethod
    def add(container: set, item: Any) -> None:
        container.add(item)

    @staticmethod
    def remove(container: set, item: Any) -> None:
        container.discard(item)

    @staticmethod
    def contains(container: set, item: Any) -> bool:
        return item in container


class MapManager:
    """`add(key, value)` inserts or overwrites, `remove(key)` drops the entry."""

    arity = {Verb.ADD: 2, Verb.REMOVE: 1}

    @staticmethod
    def add(container: dict, key: Any, value: Any) -> None:
        container[key] = value

    @staticmethod
    def remove(container: dict, key: Any) -> None:
        container.pop(key, None)

    @staticmethod
    def contains(container: dict, key: Any) -> bool:
        return key in container


MANAGERS = {
    CollectionKind.LIST: ListManager,
    CollectionKind.MAP: MapManager,
    CollectionKind.SET: SetManager,
}


def manager_for(kind: CollectionKind):
    return MANAGERS[kind]
