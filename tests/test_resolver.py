from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from jsonapi_codec import (
    AmbiguousIdentity,
    CodecError,
    EntityModel,
    JSONAPIConfiguration,
    Link,
    PagedModel,
    PageMetadata,
    ResourceIdentifier,
    SparseFieldsetConflict,
    jsonapi_model,
)
from jsonapi_codec.core.model import Affordance, RawData, ToMany, ToOne

from .conftest import Article, Comment, Person, make_codec


@dataclass
class Node:
    id: int
    name: str
    parent: Node | None = None
    children: list[Node] = field(default_factory=list)


def identifiers(resources) -> list[tuple[str, str]]:
    return [(resource.type, resource.id) for resource in resources]


def test_primary_and_included_are_deduplicated(codec, article: Article) -> None:
    document = codec.resolve(jsonapi_model().model(article).build())

    assert identifiers([document.data]) == [("articles", "1")]
    assert identifiers(document.included) == [
        ("people", "9"),
        ("comments", "5"),
        ("comments", "12"),
        ("people", "2"),
    ]


def test_relationships_hold_identifiers_only(codec, article: Article) -> None:
    document = codec.resolve(jsonapi_model().model(article).build())

    relationships = document.data.relationships
    assert relationships["author"].data == ToOne(ResourceIdentifier("people", "9"))
    assert relationships["comments"].data == ToMany(
        (ResourceIdentifier("comments", "5"), ResourceIdentifier("comments", "12"))
    )


def test_primary_resources_are_not_repeated_in_included(codec, dan: Person) -> None:
    comment = Comment(1, "Hello", author=dan)
    document = codec.resolve(jsonapi_model().model([dan, comment]).build())

    assert identifiers(document.data) == [("people", "9"), ("comments", "1")]
    assert document.included == ()


def test_duplicate_primary_entities_render_once(codec, dan: Person) -> None:
    document = codec.resolve(jsonapi_model().model([dan, Person(9, "Dan", "G")]).build())

    assert identifiers(document.data) == [("people", "9")]


def test_cycles_terminate() -> None:
    codec = make_codec().register(Node)
    root = Node(1, "root")
    child = Node(2, "child", parent=root)
    root.children.append(child)
    root.parent = root

    document = codec.resolve(jsonapi_model().model(root).build())

    assert identifiers(document.included) == [("nodes", "2")]
    assert document.data.relationships["parent"].data == ToOne(ResourceIdentifier("nodes", "1"))
    assert document.included[0].relationships["parent"].data == ToOne(
        ResourceIdentifier("nodes", "1")
    )


def test_explicit_includes_are_staged_after_primary(codec, dan: Person) -> None:
    ash = Person(2, "Ash", "Ketchum")
    document = codec.resolve(jsonapi_model().model(Article(1, "A")).included([ash, dan, ash]).build())

    assert identifiers(document.included) == [("people", "2"), ("people", "9")]


def test_null_and_absent_to_one(codec, dan: Person) -> None:
    article = Article(1, "A")
    model = (
        jsonapi_model()
        .model(article)
        .relationship("editor", None)
        .relationship("reviewer", related_link="http://localhost/articles/1/reviewer")
        .build()
    )

    relationships = codec.resolve(model).data.relationships
    assert relationships["author"].data == ToOne(None)
    assert relationships["editor"].data == ToOne(None)
    assert relationships["reviewer"].data is None


def test_always_array(codec) -> None:
    model = (
        jsonapi_model()
        .model(Comment(1, "x"))
        .relationship_with_data_array("author")
        .relationship_with_data_array("likes")
        .build()
    )

    relationships = codec.resolve(model).data.relationships
    assert relationships["author"].data == ToMany(())
    assert relationships["likes"].data == ToMany(())


def test_builder_links_merge_with_entity_relationship(codec, article: Article) -> None:
    model = (
        jsonapi_model()
        .model(article)
        .relationship("author", related_link="http://localhost/articles/1/author")
        .build()
    )

    relationship = codec.resolve(model).data.relationships["author"]
    assert relationship.data == ToOne(ResourceIdentifier("people", "9"))
    assert relationship.links == (Link("http://localhost/articles/1/author", rel="related"),)


def test_identifier_and_raw_targets_are_not_included(codec) -> None:
    model = (
        jsonapi_model()
        .model(Article(1, "A"))
        .relationship("editor", ResourceIdentifier("people", "3"))
        .relationship("publisher", {"type": "publishers", "id": "1"})
        .build()
    )

    document = codec.resolve(model)
    assert document.included == ()
    assert document.data.relationships["publisher"].data == RawData({"type": "publishers", "id": "1"})


def test_sparse_fieldsets_limit_traversal(codec, article: Article) -> None:
    model = jsonapi_model().model(article).fields("articles", "title", "author").build()

    document = codec.resolve(model)

    assert document.data.attributes == {"title": "JSON:API paints my bikeshed!"}
    assert list(document.data.relationships) == ["author"]
    assert identifiers(document.included) == [("people", "9")]


def test_sparse_fieldset_unknown_field_raises(codec, article: Article) -> None:
    model = jsonapi_model().model(article).fields("articles", "subtitle").build()

    with pytest.raises(SparseFieldsetConflict) as exc_info:
        codec.resolve(model)

    assert exc_info.value.type == "articles"
    assert exc_info.value.field == "subtitle"


def test_id_attribute_rendered(article: Article) -> None:
    codec = make_codec(JSONAPIConfiguration(id_attribute_rendered=True))

    document = codec.resolve(jsonapi_model().model(Person(9, "Dan", "G")).build())

    assert document.data.attributes["id"] == 9


def test_id_sentinel(dan: Person) -> None:
    configuration = JSONAPIConfiguration(id_not_serialized_for_value={"people": "9"})
    document = make_codec(configuration).resolve(jsonapi_model().model(dan).build())

    assert not document.data.id_rendered
    assert document.data.identifier == ResourceIdentifier("people", "9")


def test_unidentifiable_entity_fails_whole_document(codec, dan: Person) -> None:
    broken = Person(None, "No", "Id")
    model = jsonapi_model().model(Article(1, "A", author=broken)).build()

    with pytest.raises(AmbiguousIdentity):
        codec.resolve(model)


def test_page_meta_and_links_are_created(codec) -> None:
    page = PageMetadata.of(number=1, size=2, total_elements=5)
    model = (
        jsonapi_model()
        .model(PagedModel.of([Person(1, "A", "B"), Person(2, "C", "D")], page))
        .link("http://localhost/people?sort=name")
        .build()
    )

    document = codec.resolve(model)

    assert document.meta == {
        "page": {"number": 1, "size": 2, "totalElements": 5, "totalPages": 3}
    }
    assert [link.rel for link in document.links] == ["self", "first", "prev", "next", "last"]
    assert document.links[-1].href == "http://localhost/people?sort=name&page[number]=2&page[size]=2"


def test_page_meta_creation_can_be_disabled() -> None:
    configuration = JSONAPIConfiguration(
        page_meta_automatically_created=False,
        pagination_links_automatically_created=False,
    )
    page = PageMetadata.of(number=0, size=2, total_elements=5)
    model = jsonapi_model().model(PagedModel.of([], page)).link("http://localhost/people").build()

    document = make_codec(configuration).resolve(model)

    assert document.meta is None
    assert [link.rel for link in document.links] == ["self"]


def test_relationships_without_single_primary_raise(codec) -> None:
    model = jsonapi_model().model(Article(1, "A")).relationship("author", None).build()
    empty = type(model)(relationships=model.relationships)

    with pytest.raises(CodecError):
        codec.resolve(empty)


def test_collection_item_models_carry_relationships(codec, dan: Person) -> None:
    first = jsonapi_model().model(Article(1, "A")).relationship("editor", dan).build()
    second = jsonapi_model().model(Article(2, "B")).build()

    document = codec.resolve(jsonapi_model().model([first, second]).build())

    assert identifiers(document.data) == [("articles", "1"), ("articles", "2")]
    assert "editor" in document.data[0].relationships
    assert "editor" not in document.data[1].relationships
    assert identifiers(document.included) == [("people", "9")]


def test_meta_only_document_has_no_data(codec) -> None:
    document = codec.resolve(jsonapi_model().meta("count", 0).build())

    assert not document.has_data
    assert document.meta == {"count": 0}


class EditAffordances:
    def affordances_for(self, entity):
        return [Affordance("updatePerson", "PATCH")] if isinstance(entity, Person) else []


def test_affordances_attach_to_self_link(dan: Person) -> None:
    codec = make_codec()
    codec.resolver.affordance_provider = EditAffordances()
    entity = EntityModel.of(dan, links=[Link("http://localhost/people/9")])

    document = codec.resolve(jsonapi_model().model(entity).build())

    assert document.data.links[0].affordances == (Affordance("updatePerson", "PATCH"),)
