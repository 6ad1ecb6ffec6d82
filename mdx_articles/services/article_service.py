"""
Article service: lifecycle of the Article aggregate.

Design notes
------------
- Create and update run as one ``Transaction`` each. The article row, its
  headings and its file records commit together; files moved into
  permanent storage are removed again if the transaction rolls back.
- Rendered HTML lives only in the cache and is written after commit. It is
  derived data and can be rebuilt from ``content_markdown`` and the
  attached files at any time.
- Relationships are ``lazy="noload"``; every query that needs headings or
  files asks for them with ``selectinload``.
- Bulk delete handles ids one by one, each in its own transaction, and
  gives up once the error budget is spent.
"""
import functools
import logging
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mdx_articles import storage
from mdx_articles.config import settings
from mdx_articles.errors import ApiError, service_method
from mdx_articles.markdown import extract_referenced_files, sanitize_markdown_to_text
from mdx_articles.models import Article, ArticleFile, Heading
from mdx_articles.schemas import (
    ArticleCreate,
    ArticleFilters,
    ArticleUpdate,
    BulkDeleteOutcome,
    FileInfo,
)
from mdx_articles.services import content_service, file_service, heading_service
from mdx_articles.services.file_service import UploadBundle
from mdx_articles.services.transaction import Transaction

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")


def slugify(text: str) -> str:
    """
    Return a URL-safe, lowercase slug derived from *text*.

    Text with nothing sluggable in it gets a random ``article-<hex>`` slug.
    """
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    slug = _SLUG_DASH_RE.sub("-", text).strip("-")
    return slug or f"article-{storage.generate_unique_id()[:12]}"


def _like_pattern(text: str) -> str:
    """Substring LIKE pattern matching *text* literally, escaped with a backslash."""
    text = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{text}%"


def error_budget(count: int) -> int:
    """Failures tolerated by a bulk operation over *count* items."""
    return max(count // 2, 1)


def _file_info(file: ArticleFile) -> FileInfo:
    return FileInfo(original_name=file.original_name, path=file.path)


async def _find_article(db: AsyncSession, article_id: int, *options) -> Article:
    result = await db.execute(select(Article).where(Article.id == article_id).options(*options))
    article = result.scalar_one_or_none()
    if article is None:
        raise ApiError.not_found(f"Article with id: {article_id} not found")
    return article


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _heading_to_dict(heading: Heading) -> dict:
    return {"id": heading.id, "title": heading.title}


def _preview_to_dict(article: Article) -> dict:
    """Serialise an Article to the preview shape (no content, few headings)."""
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "author_username": article.author_username,
        "event_start_date": article.event_start_date,
        "event_end_date": article.event_end_date,
        "headings": [
            _heading_to_dict(h) for h in article.headings[: settings.PREVIEW_HEADINGS_LIMIT]
        ],
    }


def _article_to_dict(article: Article) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "cover_image_url": article.cover_image_url,
        "author_username": article.author_username,
        "content_markdown": article.content_markdown,
        "event_start_date": article.event_start_date,
        "event_end_date": article.event_end_date,
        "is_published": article.is_published,
        "created_at": article.created_at,
        "updated_at": article.updated_at,
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@service_method
async def get_article(db: AsyncSession, article_id: int) -> dict:
    article = await _find_article(db, article_id, selectinload(Article.headings))
    return _preview_to_dict(article)


@service_method
async def get_filtered_articles(db: AsyncSession, filters: ArticleFilters) -> list[dict]:
    """
    Return previews of the articles matching every supplied filter.

    Title and author match as case-insensitive substrings; the default
    author name is not a useful filter and is ignored. Raises BadRequest
    when no filter is usable.
    """
    conditions = []
    if filters.title:
        conditions.append(Article.title.ilike(_like_pattern(filters.title), escape="\\"))
    if filters.author_username and filters.author_username != settings.DEFAULT_AUTHOR_USERNAME:
        conditions.append(
            Article.author_username.ilike(_like_pattern(filters.author_username), escape="\\")
        )
    if filters.event_start_date:
        conditions.append(Article.event_start_date >= filters.event_start_date)
    if filters.event_end_date:
        conditions.append(Article.event_end_date <= filters.event_end_date)

    if not conditions:
        raise ApiError.bad_request("Invalid filter params")

    result = await db.execute(
        select(Article)
        .where(*conditions)
        .options(selectinload(Article.headings))
        .order_by(Article.id)
    )
    return [_preview_to_dict(a) for a in result.scalars().all()]


@service_method
async def search_article_by_content(db: AsyncSession, content: str) -> dict:
    """Return the first article whose markdown contains *content*, with its HTML."""
    text = sanitize_markdown_to_text(content)
    if not text:
        raise ApiError.bad_request("Invalid content")

    result = await db.execute(
        select(Article)
        .where(Article.content_markdown.ilike(_like_pattern(text), escape="\\"))
        .options(selectinload(Article.headings), selectinload(Article.files))
        .order_by(Article.id)
        .limit(1)
    )
    article = result.scalar_one_or_none()
    if article is None:
        raise ApiError.not_found("Article not found")

    return {
        "article": _preview_to_dict(article),
        "content_html": await _content_html(article),
    }


@service_method
async def get_article_content(db: AsyncSession, article_id: int) -> dict:
    article = await _find_article(
        db, article_id, selectinload(Article.headings), selectinload(Article.files)
    )
    return {
        "content_html": await _content_html(article),
        "headings": [_heading_to_dict(h) for h in article.headings],
    }


async def _content_html(article: Article) -> str:
    """
    Return the cached HTML of *article*.

    A miss is NotFound unless ``REGENERATE_MISSING_CONTENT`` is enabled, in
    which case the HTML is rendered again and cached. *article* must have
    its files loaded.
    """
    html = await content_service.lookup_html(article.id)
    if html is not None:
        return html
    if not settings.REGENERATE_MISSING_CONTENT:
        raise ApiError.not_found(f"Content for article with id {article.id} not found")

    logger.info("Regenerating missing content for article %d", article.id)
    html = content_service.render(article.content_markdown, [_file_info(f) for f in article.files])
    await content_service.cache_html(article.id, html)
    return html


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

@service_method
async def create_article(
    db: AsyncSession, data: ArticleCreate, uploads: UploadBundle | None = None
) -> dict:
    """
    Create an article with its files and headings, then cache its HTML.

    Any failure rolls the whole creation back, including files already
    moved into permanent storage.
    """
    async with Transaction(db) as tx:
        article = Article(**data.column_values(), slug=slugify(data.title))
        db.add(article)
        await db.flush()

        referenced = extract_referenced_files(data.content_markdown)
        saved = (
            await file_service.save_uploads(db, tx, uploads, article.id, referenced)
            if uploads is not None
            else []
        )
        html = content_service.render(data.content_markdown, saved)

        explicit = [h.title for h in data.headings or []]
        await heading_service.create_headings(
            db,
            article.id,
            heading_service.combine_headings(data.content_markdown, explicit, data.title),
        )
        tx.after_commit(functools.partial(content_service.cache_html, article.id, html))

    logger.info("Created article %d (%s) with %d file(s)", article.id, article.slug, len(saved))
    return _article_to_dict(article)


@service_method
async def update_article(
    db: AsyncSession,
    article_id: int,
    data: ArticleUpdate,
    uploads: UploadBundle | None = None,
) -> dict:
    """
    Apply a partial update to an article and return it with its headings.

    Only supplied fields change. HTML is re-rendered when the markdown or
    the set of attached files changes; headings are recomputed when the
    markdown, the title or the explicit headings are supplied.
    """
    async with Transaction(db) as tx:
        article = await _find_article(db, article_id, selectinload(Article.files))

        patch = data.to_patch()
        if "title" in patch:
            patch["slug"] = slugify(patch["title"])
        for field, value in patch.items():
            setattr(article, field, value)
        if patch:
            await db.flush()

        referenced = extract_referenced_files(article.content_markdown)

        to_delete = set(data.file_ids_to_delete)
        retained = [_file_info(f) for f in article.files if f.id not in to_delete]
        deleted = (
            await file_service.delete_files(db, tx, article.id, data.file_ids_to_delete)
            if to_delete
            else []
        )
        saved = (
            await file_service.save_uploads(db, tx, uploads, article.id, referenced)
            if uploads is not None
            else []
        )
        files = retained + saved

        if data.content_markdown is not None or deleted or saved:
            html = content_service.render(article.content_markdown, files)
            tx.after_commit(functools.partial(content_service.cache_html, article.id, html))

        if data.headings is not None or data.content_markdown is not None or data.title is not None:
            explicit = [h.title for h in data.headings or []]
            await heading_service.sync_headings(
                db,
                article.id,
                heading_service.combine_headings(article.content_markdown, explicit, article.title),
            )

        await db.refresh(article)

    headings = await heading_service.get_headings(db, article_id)
    return {
        "article": _article_to_dict(article),
        "headings": [_heading_to_dict(h) for h in headings],
    }


async def _delete_article(db: AsyncSession, article_id: int) -> None:
    async with Transaction(db) as tx:
        article = await _find_article(
            db, article_id, selectinload(Article.headings), selectinload(Article.files)
        )
        await db.delete(article)
        tx.after_commit(functools.partial(content_service.delete_html, article_id))
        tx.after_commit(functools.partial(storage.remove_dir, storage.article_dir(article_id)))


@service_method
async def bulk_delete_articles(db: AsyncSession, ids: list[int]) -> dict:
    """
    Delete each article in *ids*, tolerating up to ``error_budget`` failures.

    Processing stops as soon as the budget is spent; remaining ids are
    reported as skipped. Status is 200 with no failures, 206 when some
    failed within budget and 400 otherwise.
    """
    budget = error_budget(len(ids))
    errors = 0
    results: list[BulkDeleteOutcome] = []

    for index, article_id in enumerate(ids):
        if errors >= budget:
            results.extend(BulkDeleteOutcome(id=i, status="skipped") for i in ids[index:])
            break
        try:
            await _delete_article(db, article_id)
        except Exception as exc:
            errors += 1
            reason = exc.message if isinstance(exc, ApiError) else str(exc)
            logger.warning("Error while deleting article %d: %s", article_id, reason)
            results.append(BulkDeleteOutcome(id=article_id, status="failed", reason=reason))
            continue
        results.append(BulkDeleteOutcome(id=article_id, status="deleted"))

    if errors == 0:
        status, message = 200, "Articles deleted"
    elif errors < budget:
        status, message = 206, "Articles deleted partially"
    else:
        status, message = 400, "Articles were not deleted. Too much invalid data"

    return {
        "status": status,
        "message": message,
        "results": [r.model_dump() for r in results],
    }
