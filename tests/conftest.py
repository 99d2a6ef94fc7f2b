from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from jsonapi_codec import EntityModel, JSONAPICodec, JSONAPIConfiguration, Link


@dataclass
class Person:
    id: int
    first_name: str
    last_name: str
    twitter: str | None = None


@dataclass
class Comment:
    id: int
    body: str
    author: Person | None = None


@dataclass
class Article:
    id: int
    title: str
    author: Person | None = None
    comments: list[Comment] = field(default_factory=list)


def make_codec(configuration: JSONAPIConfiguration | None = None) -> JSONAPICodec:
    codec = JSONAPICodec(configuration or JSONAPIConfiguration())
    codec.register(Person, "people").register(Comment).register(Article)
    return codec


@pytest.fixture
def codec() -> JSONAPICodec:
    return make_codec()


@pytest.fixture
def dan() -> Person:
    return Person(9, "Dan", "Gebhardt", "dgeb")


@pytest.fixture
def article(dan: Person) -> Article:
    ash = Person(2, "Ash", "Ketchum")
    comments = [
        Comment(5, "First!", author=ash),
        Comment(12, "I like XML better", author=dan),
    ]
    return Article(1, "JSON:API paints my bikeshed!", author=dan, comments=comments)


@pytest.fixture
def article_model(article: Article) -> EntityModel:
    return EntityModel.of(article, links=[Link("http://example.com/articles/1")])
