"""Serve SQLAlchemy models as JSON:API documents through the codec.

    uvicorn examples.jsonapi_example_app:app --reload

Try ``/api/v1/articles?include=author,comments.author&fields[people]=name``.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import Depends, FastAPI, Request
from sqlalchemy import ForeignKey, String, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, selectinload

from jsonapi_codec import EntityModel, JSONAPICodec, Link, PagedModel, PageMetadata, jsonapi_model
from jsonapi_codec.middleware import ErrorHandlerMiddleware, register_exception_handlers
from jsonapi_codec.responses import JSONAPIResponse
from jsonapi_codec.settings import get_settings
from jsonapi_codec.utils import apply_sparse_fieldsets, parse_include

engine = create_async_engine("sqlite+aiosqlite:///./jsonapi_codec_example.db")
session_factory = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


class Person(Base):
    __tablename__ = "people"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    twitter: Mapped[Optional[str]] = mapped_column(String(60), default=None)
    articles: Mapped[List["Article"]] = relationship(back_populates="author")


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    author_id: Mapped[Optional[int]] = mapped_column(ForeignKey("people.id"))
    author: Mapped[Optional[Person]] = relationship(back_populates="articles")
    comments: Mapped[List["Comment"]] = relationship(back_populates="article")


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    body: Mapped[str]
    article_id: Mapped[int] = mapped_column(ForeignKey("articles.id"))
    author_id: Mapped[Optional[int]] = mapped_column(ForeignKey("people.id"))
    article: Mapped[Article] = relationship(back_populates="comments")
    author: Mapped[Optional[Person]] = relationship()


codec = JSONAPICodec(get_settings().to_configuration())
codec.register(Person, "people").register(Article).register(Comment)

# Only loaded relationships are rendered, so each include path maps to a loader.
LOADERS = {
    "author": selectinload(Article.author),
    "comments": selectinload(Article.comments),
    "comments.author": selectinload(Article.comments).selectinload(Comment.author),
}


async def seed(session: AsyncSession) -> None:
    if (await session.execute(select(Person.id).limit(1))).first() is not None:
        return
    dan = Person(name="Dan Gebhardt", twitter="dgeb")
    ada = Person(name="Ada Lovelace")
    article = Article(title="JSON:API paints my bikeshed!", author=dan)
    session.add_all(
        [
            dan,
            ada,
            article,
            Article(title="Notes on the analytical engine", author=ada),
            Comment(body="First!", article=article, author=ada),
            Comment(body="I like XML better", article=article, author=dan),
        ]
    )
    await session.commit()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    async with session_factory() as session:
        await seed(session)
    yield
    await engine.dispose()


async def session_dependency() -> AsyncIterator[AsyncSession]:
    async with session_factory() as session, session.begin():
        yield session


app = FastAPI(title="jsonapi-codec example", lifespan=lifespan)
app.add_middleware(ErrorHandlerMiddleware, codec=codec)
register_exception_handlers(app, codec)


def article_model(article: Article, request: Request) -> EntityModel:
    href = str(request.url_for("read_article", article_id=article.id))
    return EntityModel.of(article, links=[Link(href)])


@app.get("/api/v1/articles")
async def list_articles(
    request: Request, session: AsyncSession = Depends(session_dependency)
) -> JSONAPIResponse:
    params = request.query_params
    number = int(params.get("page[number]", 0))
    size = int(params.get("page[size]", 10))

    query = select(Article).order_by(Article.id).offset(number * size).limit(size)
    query = query.options(*(LOADERS[path] for path in parse_include(params) if path in LOADERS))
    articles = (await session.scalars(query)).all()
    total = await session.scalar(select(func.count()).select_from(Article))

    paged = PagedModel.of(
        [article_model(article, request) for article in articles],
        PageMetadata.of(number=number, size=size, total_elements=total or 0),
    )
    builder = jsonapi_model().model(paged).link(str(request.url))
    return JSONAPIResponse(apply_sparse_fieldsets(builder, params).build(), codec=codec)


@app.get("/api/v1/articles/{article_id}")
async def read_article(
    article_id: int, request: Request, session: AsyncSession = Depends(session_dependency)
) -> JSONAPIResponse:
    query = (
        select(Article)
        .where(Article.id == article_id)
        .options(LOADERS["author"], LOADERS["comments.author"])
    )
    article = (await session.scalars(query)).one()
    relationships_url = f"{request.url_for('read_article', article_id=article_id)}/relationships"
    builder = (
        jsonapi_model()
        .model(article_model(article, request))
        .relationship("comments", self_link=f"{relationships_url}/comments")
    )
    return JSONAPIResponse(apply_sparse_fieldsets(builder, request.query_params).build(), codec=codec)


@app.post("/api/v1/articles", status_code=201)
async def create_article(
    request: Request, session: AsyncSession = Depends(session_dependency)
) -> JSONAPIResponse:
    article = codec.deserialize(await request.body(), Article).data
    session.add(article)
    await session.flush()
    return JSONAPIResponse(
        jsonapi_model().model(article_model(article, request)).build(),
        status_code=201,
        codec=codec,
    )
