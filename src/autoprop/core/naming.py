"""
Accessor naming: `getTitle` <-> (Verb.GET, "title").
"""

import re
from enum import Enum

from ..errors import UnknownMethod


class Verb(str, Enum):
    GET = "get"
    IS = "is"
    SET = "set"
    ADD = "add"
    REMOVE = "remove"

    @property
    def on_items(self) -> bool:
        """`add`/`remove` are named after the item, not the property."""
        return self in (Verb.ADD, Verb.REMOVE)


ACCESSOR_RE = re.compile(r"^(get|is|set|add|remove)([A-Z]\w*)$")


def parse_method_name(name: str) -> tuple[Verb, str]:
    """Split `addTag` into (Verb.ADD, "tag"); raise UnknownMethod otherwise."""
    match = ACCESSOR_RE.match(name)
    if match is None:
        raise UnknownMethod(name)
    verb, rest = match.groups()
    return Verb(verb), rest[0].lower() + rest[1:]


def method_name(verb: Verb, stem: str) -> str:
    return f"{verb.value}{stem[0].upper()}{stem[1:]}"
