from typing import Annotated, Optional

import pytest
from pydantic import Field, ValidationError

from autoprop import (
    Access,
    Associated,
    DefinitionError,
    ListBehavior,
    MapBehavior,
    Record,
    SetBehavior,
    Verb,
)
from autoprop.core.properties import CollectionKind


class Article(Record):
    title: Annotated[str, Access("get", "set")] = ""
    draft: Annotated[bool, Access("is")] = True
    views: Annotated[int, Field(ge=0), Access("get", "set")] = 0
    tags: Annotated[list[str], Access("get"), ListBehavior("tag")] = []
    labels: Annotated[set[str], SetBehavior("label", methods=("add",))] = set()
    meta: Annotated[dict[str, str], Access("get"), MapBehavior()] = {}
    internal: str = "not an accessible property"


def test_collects_only_marked_fields():
    assert set(Article.property_metadata()) == {
        "title",
        "draft",
        "views",
        "tags",
        "labels",
        "meta",
    }


def test_access_rights():
    props = Article.property_metadata()
    assert props["title"].access == {Verb.GET, Verb.SET}
    assert props["draft"].access == {Verb.IS}
    assert props["tags"].access == {Verb.GET, Verb.ADD, Verb.REMOVE}
    assert props["labels"].access == {Verb.ADD}


def test_collection_behavior():
    props = Article.property_metadata()
    assert props["title"].collection is None
    assert props["tags"].collection.kind is CollectionKind.LIST
    assert props["tags"].collection.item_name == "tag"
    assert props["labels"].collection.kind is CollectionKind.SET
    # item name defaults to the property name
    assert props["meta"].collection.item_name == "meta"


def test_metadata_is_frozen():
    meta = Article.property_metadata()["title"]
    with pytest.raises(ValidationError):
        meta.name = "other"


def test_generated_accessor_names():
    assert Article.accessor_names() == [
        "addLabel",
        "addMeta",
        "addTag",
        "getMeta",
        "getTags",
        "getTitle",
        "getViews",
        "isDraft",
        "removeMeta",
        "removeTag",
        "setTitle",
        "setViews",
    ]


def test_unknown_verb_is_a_definition_error():
    with pytest.raises(DefinitionError):
        Access("get", "fetch")


def test_add_without_collection_is_rejected():
    with pytest.raises(DefinitionError, match="without a collection behavior"):

        class Broken(Record):
            name: Annotated[str, Access("get", "add")] = ""


def test_collection_marker_must_match_annotation():
    with pytest.raises(DefinitionError, match="declared as a set"):

        class Broken(Record):
            items: Annotated[list[str], SetBehavior("item")] = []


def test_two_collection_markers_are_rejected():
    with pytest.raises(DefinitionError, match="more than one"):

        class Broken(Record):
            items: Annotated[list[str], ListBehavior("item"), SetBehavior("item")] = []


def test_duplicate_item_names_are_rejected():
    with pytest.raises(DefinitionError, match="item name 'tag'"):

        class Broken(Record):
            tags: Annotated[list[str], ListBehavior("tag")] = []
            more_tags: Annotated[set[str], SetBehavior("tag")] = set()


def test_maps_cannot_be_associated():
    with pytest.raises(DefinitionError, match="maps cannot be associated"):

        class Broken(Record):
            index: Annotated[
                dict[str, "Article"], MapBehavior("entry"), Associated("Article", "x")
            ] = {}


def test_association_metadata_records_target():
    class Owner(Record):
        pet: Annotated[Optional[Article], Access("get", "set"), Associated(Article, "owner")] = None

    assoc = Owner.property_metadata()["pet"].association
    assert assoc.target == "Article"
    assert assoc.reciprocal == "owner"
    assert assoc.module == Article.__module__
