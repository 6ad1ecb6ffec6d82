"""Render cache writer: markdown -> HTML, stored in Redis per article."""
from collections.abc import Iterable

from mdx_articles.cache import cache
from mdx_articles.config import settings
from mdx_articles.errors import ApiError
from mdx_articles.markdown import render_markdown
from mdx_articles.schemas import FileInfo


def render(markdown: str, files: Iterable[FileInfo] = ()) -> str:
    try:
        return render_markdown(markdown, files)
    except Exception as exc:
        raise ApiError.bad_request(f"Markdown could not be rendered: {exc}") from exc


async def cache_html(article_id: int, html: str) -> None:
    await cache.set_value(cache.content_key(article_id), html, ttl=settings.CACHE_TTL_CONTENT)


async def lookup_html(article_id: int) -> str | None:
    return await cache.get_value(cache.content_key(article_id))


async def delete_html(article_id: int) -> None:
    await cache.delete_value(cache.content_key(article_id))
