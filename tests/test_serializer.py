from __future__ import annotations

import datetime as dt
import json

from jsonapi_codec import (
    AffordanceType,
    EntityModel,
    JSONAPIConfiguration,
    JSONAPIErrorBuilder,
    Link,
    PagedModel,
    PageMetadata,
    jsonapi_model,
)
from jsonapi_codec.core.model import Affordance, AffordanceField

from .conftest import Article, Comment, Person, make_codec


def test_articles_scenario(codec, article_model: EntityModel) -> None:
    model = jsonapi_model().model(article_model).link("http://example.com/articles/1").build()

    payload = json.loads(codec.serialize(model))

    assert payload == {
        "data": {
            "id": "1",
            "type": "articles",
            "attributes": {"title": "JSON:API paints my bikeshed!"},
            "relationships": {
                "author": {"data": {"type": "people", "id": "9"}},
                "comments": {
                    "data": [
                        {"type": "comments", "id": "5"},
                        {"type": "comments", "id": "12"},
                    ]
                },
            },
            "links": {"self": "http://example.com/articles/1"},
        },
        "included": [
            {
                "id": "9",
                "type": "people",
                "attributes": {"first_name": "Dan", "last_name": "Gebhardt", "twitter": "dgeb"},
            },
            {
                "id": "5",
                "type": "comments",
                "attributes": {"body": "First!"},
                "relationships": {"author": {"data": {"type": "people", "id": "2"}}},
            },
            {
                "id": "12",
                "type": "comments",
                "attributes": {"body": "I like XML better"},
                "relationships": {"author": {"data": {"type": "people", "id": "9"}}},
            },
            {
                "id": "2",
                "type": "people",
                "attributes": {"first_name": "Ash", "last_name": "Ketchum", "twitter": None},
            },
        ],
        "links": {"self": "http://example.com/articles/1"},
    }


def test_top_level_key_order(article: Article) -> None:
    codec = make_codec(JSONAPIConfiguration(jsonapi_version_rendered=True))
    model = jsonapi_model().model(article).link("http://localhost/articles/1").meta("a", 1).build()

    payload = json.loads(codec.serialize(model))

    assert list(payload) == ["jsonapi", "data", "included", "links", "meta"]
    assert payload["jsonapi"] == {"version": "1.1"}
    assert list(payload["data"]) == ["id", "type", "attributes", "relationships"]


def test_output_is_compact_utf8(codec) -> None:
    body = codec.serialize(jsonapi_model().model(Person(1, "Zoë", "Ünal")).build())

    assert body == (
        '{"data":{"id":"1","type":"people","attributes":'
        '{"first_name":"Zoë","last_name":"Ünal","twitter":null}}}'
    ).encode("utf-8")


def test_empty_document_has_null_data(codec) -> None:
    assert codec.to_dict(jsonapi_model().build()) == {"data": None}


def test_empty_collection_has_empty_array(codec) -> None:
    assert codec.to_dict(jsonapi_model().model([]).build()) == {"data": []}


def test_meta_only_document_omits_data(codec) -> None:
    assert codec.to_dict(jsonapi_model().meta("count", 0).build()) == {"meta": {"count": 0}}


def test_null_and_absent_to_one_on_the_wire(codec) -> None:
    model = (
        jsonapi_model()
        .model(Comment(1, "x"))
        .relationship("reviewer", related_link="http://localhost/comments/1/reviewer")
        .build()
    )

    relationships = codec.to_dict(model)["data"]["relationships"]

    assert relationships["author"] == {"data": None}
    assert relationships["reviewer"] == {"links": {"related": "http://localhost/comments/1/reviewer"}}


def test_empty_to_many_with_data_array(codec) -> None:
    model = jsonapi_model().model(Comment(1, "x")).relationship_with_data_array("likes").build()

    assert codec.to_dict(model)["data"]["relationships"]["likes"] == {"data": []}


def test_relationship_links_and_meta(codec) -> None:
    model = (
        jsonapi_model()
        .model(Article(1, "A"))
        .relationship(
            "comments",
            self_link="http://localhost/articles/1/relationships/comments",
            related_link="http://localhost/articles/1/comments",
            meta={"count": 0},
        )
        .build()
    )

    assert codec.to_dict(model)["data"]["relationships"]["comments"] == {
        "data": [],
        "links": {
            "self": "http://localhost/articles/1/relationships/comments",
            "related": "http://localhost/articles/1/comments",
        },
        "meta": {"count": 0},
    }


def test_empty_attributes_object() -> None:
    model = jsonapi_model().model(Article(1, "A")).fields("articles", "author").build()

    rendered = make_codec().to_dict(model)["data"]
    assert rendered["attributes"] == {}

    configuration = JSONAPIConfiguration(empty_attributes_object_serialized=False)
    model = jsonapi_model().model(Article(1, "A")).fields("articles", "author").build()
    assert "attributes" not in make_codec(configuration).to_dict(model)["data"]


def test_id_sentinel_omits_id() -> None:
    configuration = JSONAPIConfiguration(id_not_serialized_for_value={"*": "0"})
    rendered = make_codec(configuration).to_dict(jsonapi_model().model(Person(0, "New", "P")).build())

    assert "id" not in rendered["data"]
    assert rendered["data"]["type"] == "people"


def test_attribute_values_are_made_json_compatible(codec) -> None:
    person = Person(1, "A", "B", twitter=None)
    person.first_name = dt.date(2024, 1, 31)

    rendered = codec.to_dict(jsonapi_model().model(person).build())

    assert rendered["data"]["attributes"]["first_name"] == "2024-01-31"


def test_link_rendering(codec) -> None:
    links = [
        Link("http://localhost/people/1"),
        Link("http://localhost/people/1/profile", rel="profile", title="Profile", meta={"a": 1}),
        Link("http://localhost/people/{id}", rel="template", templated=True),
        Link("http://localhost/alt/1", rel="alternate"),
        Link("http://localhost/alt/2", rel="alternate"),
    ]
    entity = EntityModel.of(Person(1, "A", "B"), links=links)

    rendered = codec.to_dict(jsonapi_model().model(entity).build())["data"]["links"]

    assert rendered == {
        "self": "http://localhost/people/1",
        "profile": {
            "href": "http://localhost/people/1/profile",
            "title": "Profile",
            "meta": {"a": 1},
        },
        "template": {"href": "http://localhost/people/{id}", "meta": {"isTemplated": True}},
        "alternate": ["http://localhost/alt/1", "http://localhost/alt/2"],
    }


def test_link_properties_can_be_kept_in_meta() -> None:
    configuration = JSONAPIConfiguration(jsonapi11_link_properties_removed_from_link_meta=False)
    model = jsonapi_model().link(Link("http://localhost/docs", rel="describedby", title="Docs")).build()

    rendered = make_codec(configuration).to_dict(model)["links"]

    assert rendered == {
        "describedby": {
            "href": "http://localhost/docs",
            "title": "Docs",
            "meta": {"title": "Docs"},
        }
    }


class PersonAffordances:
    def affordances_for(self, entity):
        return [
            Affordance(
                "updatePerson",
                "patch",
                input_fields=(AffordanceField("first_name", required=True), AffordanceField("last_name")),
            ),
            Affordance("search", "GET", query_fields=(AffordanceField("name"),)),
        ]


def _render_with_affordances(rendering: AffordanceType) -> dict:
    codec = make_codec(JSONAPIConfiguration(affordances_rendered_as=rendering))
    codec.resolver.affordance_provider = PersonAffordances()
    entity = EntityModel.of(Person(1, "A", "B"), links=[Link("http://localhost/people/1")])
    return codec.to_dict(jsonapi_model().model(entity).build())["data"]["links"]


def test_affordances_not_rendered_by_default() -> None:
    assert _render_with_affordances(AffordanceType.NONE) == {"self": "http://localhost/people/1"}


def test_affordances_as_link_meta() -> None:
    rendered = _render_with_affordances(AffordanceType.AS_LINK_META)

    assert rendered == {
        "self": {
            "href": "http://localhost/people/1",
            "meta": {
                "affordances": [
                    {
                        "name": "updatePerson",
                        "link": {"rel": "updatePerson", "href": "http://localhost/people/1"},
                        "httpMethod": "PATCH",
                        "inputProperties": [
                            {"name": "first_name", "type": "text", "required": True},
                            {"name": "last_name", "type": "text"},
                        ],
                    },
                    {
                        "name": "search",
                        "link": {"rel": "search", "href": "http://localhost/people/1"},
                        "httpMethod": "GET",
                        "queryProperties": [{"name": "name"}],
                    },
                ]
            },
        }
    }


def test_affordances_as_hal_forms_templates() -> None:
    rendered = _render_with_affordances(AffordanceType.AS_HAL_FORMS_TEMPLATE)

    assert rendered == {
        "self": {
            "href": "http://localhost/people/1",
            "meta": {
                "_templates": {
                    "default": {
                        "method": "PATCH",
                        "properties": [
                            {"name": "first_name", "type": "text", "required": True},
                            {"name": "last_name", "type": "text"},
                        ],
                    }
                }
            },
        }
    }


def test_paged_collection(codec) -> None:
    page = PageMetadata.of(number=0, size=1, total_elements=2)
    model = (
        jsonapi_model()
        .model(PagedModel.of([Person(1, "A", "B")], page))
        .link("http://localhost/people")
        .build()
    )

    payload = codec.to_dict(model)

    assert payload["meta"] == {"page": {"number": 0, "size": 1, "totalElements": 2, "totalPages": 2}}
    assert payload["links"] == {
        "self": "http://localhost/people",
        "next": "http://localhost/people?page[number]=1&page[size]=1",
        "last": "http://localhost/people?page[number]=1&page[size]=1",
    }


def test_serialize_errors(codec) -> None:
    error = JSONAPIErrorBuilder().error_object(
        status="404", title="Not Found", detail="Article 7 does not exist", about_link="http://localhost/docs/404"
    )

    payload = json.loads(codec.serialize_errors([error], meta={"requestId": "abc"}))

    assert payload == {
        "errors": [
            {
                "links": {"about": "http://localhost/docs/404"},
                "status": "404",
                "title": "Not Found",
                "detail": "Article 7 does not exist",
            }
        ],
        "meta": {"requestId": "abc"},
    }
