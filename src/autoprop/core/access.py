"""
Access resolution: (verb, name) -> the property it targets, or UnknownMethod.

This is the only place access rights are checked; everything downstream
trusts a verb that made it through `resolve`.
"""

from typing import Mapping, NamedTuple

from ..errors import UnknownMethod
from .naming import Verb, method_name
from .properties import CollectionBehavior, PropertyMetadata


class ResolvedAccess(NamedTuple):
    verb: Verb
    property: PropertyMetadata
    collection: CollectionBehavior | None


class AccessResolver:
    def __init__(self, properties: Mapping[str, PropertyMetadata]):
        self._properties = dict(properties)
        self._by_item = {
            meta.collection.item_name: meta.name
            for meta in self._properties.values()
            if meta.collection is not None
        }

    def resolve(self, verb: Verb, name: str) -> ResolvedAccess:
        """`name` is a property name, or an item name for add/remove."""
        invoked = method_name(verb, name)
        if verb.on_items:
            if name not in self._by_item:
                raise UnknownMethod(invoked, f"no collection with item {name!r}")
            name = self._by_item[name]

        meta = self._properties.get(name)
        if meta is None or not meta.allows(verb):
            raise UnknownMethod(invoked)
        return ResolvedAccess(verb, meta, meta.collection)

    def property(self, verb: Verb, name: str) -> PropertyMetadata:
        """Resolve by real property name, whatever the verb."""
        meta = self._properties.get(name)
        if meta is None or not meta.allows(verb):
            stem = meta.stem(verb) if meta is not None else name
            raise UnknownMethod(method_name(verb, stem))
        return meta
