"""Pydantic schemas for raw catalog responses.

Adapters validate whatever the catalogs return into these models and then
translate them into the matcher's own records. Nothing outside the api
package inspects raw response shapes. All models ignore unknown fields so
catalog additions never break parsing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class Contributor(BaseModel):
    """Author or narrator entry in either catalog."""

    name: str = ""
    asin: str | None = None

    model_config = {"extra": "ignore"}


class Genre(BaseModel):
    name: str = ""
    asin: str | None = None
    type: str | None = None

    model_config = {"extra": "ignore"}


class AudibleProduct(BaseModel):
    """Product from the Audible catalog/products keyword search."""

    asin: str = ""
    title: str = ""
    authors: list[Contributor] = Field(default_factory=list)
    narrators: list[Contributor] = Field(default_factory=list)
    format_type: str | None = None
    content_type: str | None = None

    model_config = {"extra": "ignore"}

    @field_validator("authors", "narrators", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return value or []

    @field_validator("title", "asin", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or ""

    @property
    def is_audio_product(self) -> bool:
        return self.format_type == "audiobook" or self.content_type == "Product"


class AudnexusAuthorStub(BaseModel):
    """Entry from GET /authors?name=..."""

    asin: str
    name: str

    model_config = {"extra": "ignore"}


class AudnexusWorkStub(BaseModel):
    """Work listed on an author profile (rarely populated)."""

    asin: str
    title: str = ""

    model_config = {"extra": "ignore"}


class AudnexusAuthor(BaseModel):
    """Response from GET /authors/{asin}."""

    asin: str
    name: str
    description: str | None = None
    image: str | None = None
    genres: list[Genre] = Field(default_factory=list)
    books: list[AudnexusWorkStub] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("genres", "books", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return value or []


class AudnexusBook(BaseModel):
    """Response from GET /books/{asin}."""

    asin: str
    title: str = ""
    authors: list[Contributor] = Field(default_factory=list)
    narrators: list[Contributor] = Field(default_factory=list)
    genres: list[Genre] = Field(default_factory=list)
    runtime_length_min: int | None = Field(default=None, alias="runtimeLengthMin")
    runtime_length_sec: int | None = Field(default=None, alias="runtimeLengthSec")
    publisher_name: str | None = Field(default=None, alias="publisherName")
    description: str | None = None
    summary: str | None = None
    copyright: str | int | None = None
    rating: str | None = None
    release_date: str | None = Field(default=None, alias="releaseDate")
    isbn: str | None = None
    language: str | None = None
    is_adult: bool | None = Field(default=None, alias="isAdult")
    format_type: str | None = Field(default=None, alias="formatType")
    image: str | None = None

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("authors", "narrators", "genres", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return value or []

    @field_validator("rating", mode="before")
    @classmethod
    def _rating_as_str(cls, value: Any) -> Any:
        return str(value) if value is not None else None


class AudnexusChapter(BaseModel):
    title: str = ""
    length_ms: int | None = Field(default=None, alias="lengthMs")

    model_config = {"extra": "ignore", "populate_by_name": True}


class AudnexusChapters(BaseModel):
    """Response from GET /books/{asin}/chapters."""

    runtime_length_ms: int | None = Field(default=None, alias="runtimeLengthMs")
    runtime_length_sec: int | None = Field(default=None, alias="runtimeLengthSec")
    chapters: list[AudnexusChapter] | None = None

    model_config = {"extra": "ignore", "populate_by_name": True}
