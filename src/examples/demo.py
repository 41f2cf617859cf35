"""
demo.py – One-shot showcase of autoprop records.

Reads AUTOPROP_* settings from `.env` if present, e.g.

    AUTOPROP_LOG_LEVEL=DEBUG
"""

import logging
from pprint import pprint
from typing import Annotated, Optional

from autoprop import (
    Access,
    Associated,
    AutoProp,
    InvalidValue,
    ListBehavior,
    MapBehavior,
    Record,
    SetBehavior,
    UnknownMethod,
    on,
)

logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
AutoProp.init(env_file=".env")


# ────────────────────────────────── 1. Concrete Records ─────────────────────────────────
class Author(Record):
    __construct__ = ("name",)

    name: Annotated[str, Access("get")]
    books: Annotated[
        set["Book"],
        Access("get", "set"),
        SetBehavior("book"),
        Associated("Book", "author"),
    ] = set()


class Book(Record):
    title: Annotated[str, Access("get", "set")] = ""
    published: Annotated[bool, Access("is", "set")] = False
    author: Annotated[
        Optional[Author], Access("get", "set"), Associated(Author, "books")
    ] = None
    chapters: Annotated[list[str], Access("get"), ListBehavior("chapter")] = []
    meta: Annotated[dict[str, str], Access("get"), MapBehavior("meta")] = {}


# ────────────────────────────────── 2. Hooks ─────────────────────────────────
@on.change(Book)
def log_change(change):
    print(f"   ↳ {type(change.instance).__name__}.{change.property}: {change.verb.value}")


# ────────────────────────────────── 3. Walkthrough ─────────────────────────────────
def main() -> None:
    ann = Author("Ann Leckie")
    frank = Author("Frank Herbert")

    dune = Book(title="Dune").addChapter("Book One").addChapter("Book Two")
    dune.addMeta("isbn", "978-0441013593").setPublished(True)

    print("\n→ frank.addBook(dune)")
    frank.addBook(dune)
    print(f"   dune.getAuthor() = {dune.getAuthor().getName()}")

    print("\n→ dune.setAuthor(ann)")
    dune.setAuthor(ann)
    print(f"   frank has {len(frank.getBooks())} book(s), ann has {len(ann.getBooks())}")

    try:
        dune.setTitle(42)
    except InvalidValue as exc:
        print(f"\n✗ {exc}")

    try:
        ann.setName("Someone Else")
    except UnknownMethod as exc:
        print(f"✗ {exc}")

    print(f"\nAccessors on Book: {Book.accessor_names()}")
    pprint(
        {
            "title": dune.getTitle(),
            "published": dune.isPublished(),
            "chapters": dune.getChapters(),
            "meta": dune.getMeta(),
        },
        width=80,
    )


if __name__ == "__main__":
    main()
