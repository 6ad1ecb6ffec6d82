from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mdx_articles.config import settings
from mdx_articles.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(350), unique=True, nullable=False, index=True)
    cover_image_url: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True, default=lambda: settings.DEFAULT_COVER_IMAGE_URL
    )
    author_username: Mapped[str] = mapped_column(
        String(150), nullable=False, default=lambda: settings.DEFAULT_AUTHOR_USERNAME
    )
    content_markdown: Mapped[str] = mapped_column(Text, nullable=False)
    event_start_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    event_end_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow, nullable=True
    )

    # lazy="noload" forces services to eager load explicitly. Deletes cascade
    # through whatever the caller loaded, and through the FK on Postgres.
    headings: Mapped[List["Heading"]] = relationship(
        "Heading",
        back_populates="article",
        lazy="noload",
        cascade="all, delete-orphan",
        order_by="Heading.id",
    )
    files: Mapped[List["ArticleFile"]] = relationship(
        "ArticleFile",
        back_populates="article",
        lazy="noload",
        cascade="all, delete-orphan",
        order_by="ArticleFile.id",
    )


# ---------------------------------------------------------------------------
# Heading
# ---------------------------------------------------------------------------
class Heading(Base):
    __tablename__ = "headings"

    __table_args__ = (
        UniqueConstraint("title", "article_id", name="uq_heading_title_per_article"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    article_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
    )

    article: Mapped["Article"] = relationship("Article", back_populates="headings", lazy="noload")


# ---------------------------------------------------------------------------
# ArticleFile
# ---------------------------------------------------------------------------
class ArticleFile(Base):
    __tablename__ = "article_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    article_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Relative to MEDIA_ROOT, e.g. "articles/12/<uuid>.png".
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    article: Mapped["Article"] = relationship("Article", back_populates="files", lazy="noload")
