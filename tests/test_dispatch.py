from typing import Annotated

import pytest

from autoprop import (
    Access,
    ArityMismatch,
    InvalidValue,
    ListBehavior,
    MapBehavior,
    Record,
    SetBehavior,
    UnknownMethod,
    Verb,
)


class Post(Record):
    title: Annotated[str, Access("get", "set")] = ""
    slug: Annotated[str, Access("get")] = "untitled"
    published: Annotated[bool, Access("is", "set")] = False
    tags: Annotated[list[str], Access("get"), ListBehavior("tag")] = []
    labels: Annotated[set[str], Access("get", "set"), SetBehavior("label")] = set()
    meta: Annotated[dict[str, int], Access("get"), MapBehavior("entry")] = {}


class Page(Record):
    title: Annotated[str, Access("get", "set")] = ""

    def getTitle(self):
        return f"<{self.title}>"


@pytest.fixture
def post():
    return Post()


# ---- get / is -----------------------------------------------------------------
def test_getter_returns_default(post):
    assert post.getTitle() == ""
    assert post.getSlug() == "untitled"
    assert post.isPublished() is False


def test_getter_rejects_arguments(post):
    with pytest.raises(ArityMismatch):
        post.getTitle("extra")


def test_collection_getter_returns_a_copy(post):
    post.addTag("a")
    tags = post.getTags()
    tags.append("b")
    assert post.getTags() == ["a"]


# ---- set ----------------------------------------------------------------------
def test_setter_writes_and_chains(post):
    assert post.setTitle("Hello").setPublished(True) is post
    assert post.getTitle() == "Hello"
    assert post.isPublished() is True


def test_setter_without_argument(post):
    with pytest.raises(ArityMismatch):
        post.setTitle()
    with pytest.raises(ArityMismatch):
        post.setTitle("a", "b")


def test_rejected_value_leaves_state_unchanged(post):
    post.setTitle("Kept")
    with pytest.raises(InvalidValue):
        post.setTitle(42)
    assert post.getTitle() == "Kept"


def test_read_only_property_has_no_setter(post):
    assert post.getSlug() == "untitled"
    with pytest.raises(UnknownMethod, match="setSlug"):
        post.setSlug("other")


def test_attribute_assignment_goes_through_setter(post):
    post.title = "Via attribute"
    assert post.getTitle() == "Via attribute"
    with pytest.raises(InvalidValue):
        post.title = 3
    with pytest.raises(AttributeError):
        post.slug = "nope"


def test_same_value_is_not_a_change(post, changes):
    post.setTitle("x")
    post.setTitle("x")
    assert len(changes) == 1


def test_unassociated_collection_set_replaces_container(post):
    post.addLabel("a")
    post.setLabels({"b", "c"})
    assert post.getLabels() == {"b", "c"}
    with pytest.raises(InvalidValue):
        post.setLabels(["not", "a", "set"])
    assert post.getLabels() == {"b", "c"}


# ---- add / remove -------------------------------------------------------------
def test_list_round_trip_preserves_order(post):
    post.addTag("a").addTag("b").addTag("c")
    before = post.getTags()
    post.addTag("d").removeTag("d")
    assert post.getTags() == before


def test_list_keeps_duplicates(post):
    post.addTag("a").addTag("a")
    assert post.getTags() == ["a", "a"]
    post.removeTag("a")
    assert post.getTags() == ["a"]


def test_set_add_is_idempotent(post):
    post.addLabel("x")
    once = post.getLabels()
    post.addLabel("x")
    assert post.getLabels() == once == {"x"}


def test_map_add_overwrites(post):
    post.addEntry("k", 1).addEntry("k", 2)
    assert post.getMeta() == {"k": 2}
    post.removeEntry("k")
    post.removeEntry("missing")
    assert post.getMeta() == {}


def test_map_arity(post):
    with pytest.raises(ArityMismatch):
        post.addEntry("k")
    with pytest.raises(ArityMismatch):
        post.removeEntry("k", 1)
    with pytest.raises(ArityMismatch):
        post.addTag()
    assert post.getMeta() == {}


def test_collections_start_empty():
    a, b = Post(), Post()
    a.addTag("only-a")
    assert a.getTags() == ["only-a"]
    assert b.getTags() == []


# ---- unknown names ------------------------------------------------------------
def test_unknown_accessor_names(post):
    with pytest.raises(UnknownMethod):
        post.getBody()
    with pytest.raises(UnknownMethod):
        post.addTags("a")  # item name is "tag"
    assert not hasattr(post, "removeLabelz")
    with pytest.raises(AttributeError):
        post.somethingElse


def test_invoke_by_name(post):
    post.invoke("addTag", "a")
    post.invoke("setTitle", "T")
    assert post.invoke("getTags") == ["a"]
    assert post.invoke("getTitle") == "T"
    with pytest.raises(UnknownMethod, match="Method publish does not exist"):
        post.invoke("publish")
    with pytest.raises(UnknownMethod):
        post.invoke("setSlug", "x")


def test_dispatch_table_is_built_per_type():
    table = Post.__autoprop_dispatcher__.table
    assert (Verb.ADD, "tags") in table
    assert (Verb.SET, "slug") not in table


def test_explicit_methods_win():
    page = Page(title="home")
    assert page.getTitle() == "<home>"
    page.setTitle("about")
    assert page.getTitle() == "<about>"


def test_invoke_prefers_explicit_methods():
    page = Page(title="home")
    assert page.invoke("getTitle") == "<home>"


class Slugged(Record):
    slug: Annotated[str, Access("get", "set")] = ""

    def setSlug(self, value):
        return self.invoke("setSlug", value.lower())


def test_attribute_assignment_uses_explicit_setter():
    item = Slugged()
    item.slug = "Hello"
    assert item.getSlug() == "hello"


class Journal(Record):
    entries: Annotated[list[str], Access("get"), ListBehavior("entry")] = []

    def addEntry(self, text):
        # explicit accessor delegating to the generated one
        return self.invoke("addEntry", text.strip())


def test_explicit_method_can_delegate_to_generated_operation():
    journal = Journal()
    journal.addEntry("  first ")
    journal.invoke("addEntry", " second")
    assert journal.getEntries() == ["first", "second"]


def test_subclass_inherits_accessors():
    class Announcement(Post):
        pinned: Annotated[bool, Access("is", "set")] = False

    item = Announcement().setTitle("Hi").setPinned(True)
    assert item.getTitle() == "Hi"
    assert item.isPinned() is True
    assert "setPinned" not in Post.accessor_names()
