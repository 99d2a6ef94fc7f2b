from __future__ import annotations

import json

import pytest
from pydantic import BaseModel

from jsonapi_codec import JSONAPICodec, Malformed, ResourceIdentifier, jsonapi_model


class Writer(BaseModel):
    id: int
    name: str


class Novel(BaseModel):
    id: int
    title: str
    author: Writer


@pytest.fixture
def codec() -> JSONAPICodec:
    return JSONAPICodec().register(Writer).register(Novel)


@pytest.fixture
def dune() -> Novel:
    return Novel(id=1, title="Dune", author=Writer(id=2, name="Herbert"))


def identifiers(resources) -> list[tuple[str, str]]:
    return [(resource.type, resource.id) for resource in resources]


def test_single_pydantic_entity_is_primary_data(codec: JSONAPICodec, dune: Novel) -> None:
    payload = json.loads(codec.serialize(jsonapi_model().model(dune).build()))

    assert payload == {
        "data": {
            "id": "1",
            "type": "novels",
            "attributes": {"title": "Dune"},
            "relationships": {"author": {"data": {"type": "writers", "id": "2"}}},
        },
        "included": [{"id": "2", "type": "writers", "attributes": {"name": "Herbert"}}],
    }


def test_pydantic_entities_in_collections_and_includes(codec: JSONAPICodec, dune: Novel) -> None:
    asimov = Writer(id=3, name="Asimov")

    document = codec.resolve(jsonapi_model().model([dune]).included(asimov).build())

    assert identifiers(document.data) == [("novels", "1")]
    assert identifiers(document.included) == [("writers", "3"), ("writers", "2")]


def test_pydantic_relationship_target(codec: JSONAPICodec, dune: Novel) -> None:
    editor = Writer(id=4, name="Campbell")

    document = codec.resolve(jsonapi_model().model(dune).relationship("editor", editor).build())

    assert document.data.relationships["editor"].data.identifier == ResourceIdentifier("writers", "4")
    assert ("writers", "4") in identifiers(document.included)


def test_required_to_one_round_trip(codec: JSONAPICodec, dune: Novel) -> None:
    body = codec.serialize(jsonapi_model().model(dune).build())

    parsed = codec.deserialize(body, Novel)

    assert parsed.data == dune
    assert parsed.data.author is parsed.included[0]


def test_required_to_one_without_included_resource_is_a_placeholder(codec: JSONAPICodec) -> None:
    payload = {
        "data": {
            "type": "novels",
            "id": "1",
            "attributes": {"title": "Dune"},
            "relationships": {"author": {"data": {"type": "writers", "id": "2"}}},
        }
    }

    novel = codec.deserialize(payload).data

    assert novel.title == "Dune"
    assert novel.author == ResourceIdentifier("writers", "2")


def test_required_to_one_missing_from_document_is_malformed(codec: JSONAPICodec) -> None:
    payload = {"data": {"type": "novels", "id": "1", "attributes": {"title": "Dune"}}}

    with pytest.raises(Malformed, match="missing required fields"):
        codec.deserialize(payload)


def test_invalid_pydantic_attribute_is_malformed(codec: JSONAPICodec) -> None:
    payload = {"data": {"type": "writers", "id": "2", "attributes": {"name": ["not", "a", "name"]}}}

    with pytest.raises(Malformed, match="cannot build Writer"):
        codec.deserialize(payload)
