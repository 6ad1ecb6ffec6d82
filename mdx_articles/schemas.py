from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# --- Heading ---

class HeadingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=500)


class HeadingResponse(BaseModel):
    id: int
    title: str
    model_config = ConfigDict(from_attributes=True)


# --- Files ---

class FileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    delete: list[int] | None = None


class FileInfo(BaseModel):
    """A stored file as needed for rendering: its original name and relative path."""

    original_name: str
    path: str


# --- Article ---

class ArticleBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=300)
    author_username: str | None = Field(None, max_length=150)
    content_markdown: str
    event_start_date: datetime | None = None
    event_end_date: datetime | None = None
    is_published: bool | None = None


class ArticleCreate(ArticleBase):
    headings: list[HeadingIn] | None = None

    def column_values(self) -> dict:
        """Column values for a new row; omitted optionals fall back to model defaults."""
        return self.model_dump(exclude={"headings"}, exclude_none=True)


class ArticleUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(None, min_length=1, max_length=300)
    author_username: str | None = Field(None, max_length=150)
    content_markdown: str | None = None
    event_start_date: datetime | None = None
    event_end_date: datetime | None = None
    is_published: bool | None = None
    headings: list[HeadingIn] | None = None
    files: FileUpdate | None = None

    def to_patch(self) -> dict:
        """
        Return the sparse column patch for this update.

        Only fields the client supplied with a non-null value are included;
        ``headings`` and ``files`` drive side effects and are never columns.
        """
        return self.model_dump(
            exclude_unset=True, exclude_none=True, exclude={"headings", "files"}
        )

    @property
    def file_ids_to_delete(self) -> list[int]:
        if self.files is None or not self.files.delete:
            return []
        return list(self.files.delete)


class ArticleFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    author_username: str | None = None
    event_start_date: datetime | None = None
    event_end_date: datetime | None = None


class ArticlePreview(BaseModel):
    id: int
    title: str
    slug: str
    author_username: str
    event_start_date: datetime | None
    event_end_date: datetime | None
    headings: list[HeadingResponse] = []
    model_config = ConfigDict(from_attributes=True)


class ArticleResponse(BaseModel):
    id: int
    title: str
    slug: str
    cover_image_url: str | None
    author_username: str
    content_markdown: str
    event_start_date: datetime | None
    event_end_date: datetime | None
    is_published: bool
    created_at: datetime
    updated_at: datetime | None
    model_config = ConfigDict(from_attributes=True)


class ArticleUpdateResponse(BaseModel):
    article: ArticleResponse
    headings: list[HeadingResponse]


class ArticleContent(BaseModel):
    content_html: str
    headings: list[HeadingResponse] = []


class SearchResult(BaseModel):
    article: ArticlePreview
    content_html: str


# --- Bulk delete ---

class BulkDeleteOutcome(BaseModel):
    id: int
    status: Literal["deleted", "failed", "skipped"]
    reason: str | None = None


class BulkDeleteResult(BaseModel):
    status: Literal[200, 206, 400]
    message: str
    results: list[BulkDeleteOutcome] = []


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_articles: int
    total_headings: int
    total_files: int
    cache_info: dict = {}
