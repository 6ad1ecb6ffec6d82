"""
Heading synchronizer: keeps an article's stored headings equal to the list
derived from its markdown, the caller's explicit headings and its title.

Reconciliation is a set difference by title. Every statement is scoped by
``(article_id, title)`` so articles sharing a heading title never affect
each other.
"""
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mdx_articles.errors import ApiError
from mdx_articles.markdown import extract_headings
from mdx_articles.models import Heading

HEADING_TITLE_MAX_LENGTH = Heading.__table__.c.title.type.length


@dataclass
class HeadingSync:
    deleted: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)


def combine_headings(markdown: str, explicit: Iterable[str], title: str) -> list[str]:
    """
    Build the final heading list for an article as a new list: parsed
    headings, then explicit ones, then the title. Blank titles are dropped
    and duplicates keep their first position.

    Raises BadRequest when a heading does not fit the heading column.
    """
    combined = [*extract_headings(markdown), *explicit, title]
    titles = list(dict.fromkeys(t.strip() for t in combined if t and t.strip()))
    too_long = [t for t in titles if len(t) > HEADING_TITLE_MAX_LENGTH]
    if too_long:
        raise ApiError.bad_request(
            f"Heading longer than {HEADING_TITLE_MAX_LENGTH} characters: {too_long[0][:50]!r}"
        )
    return titles


async def get_headings(db: AsyncSession, article_id: int) -> list[Heading]:
    result = await db.execute(
        select(Heading).where(Heading.article_id == article_id).order_by(Heading.id)
    )
    return list(result.scalars().all())


async def create_headings(db: AsyncSession, article_id: int, titles: Sequence[str]) -> None:
    """
    Insert *titles* for *article_id*. A title the article already has
    violates the per-article uniqueness constraint and raises Conflict.
    """
    if not titles:
        return
    db.add_all([Heading(title=title, article_id=article_id) for title in titles])
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ApiError.conflict(
            f"Duplicate heading for article {article_id}: {list(titles)}"
        ) from exc


async def sync_headings(db: AsyncSession, article_id: int, titles: Sequence[str]) -> HeadingSync:
    """
    Reconcile the stored headings of *article_id* with *titles*.

    Titles present on both sides are left untouched.
    """
    result = await db.execute(select(Heading.title).where(Heading.article_id == article_id))
    existing = set(result.scalars().all())
    wanted = list(dict.fromkeys(titles))

    diff = HeadingSync(
        deleted=sorted(existing.difference(wanted)),
        created=[t for t in wanted if t not in existing],
    )

    if diff.deleted:
        await db.execute(
            delete(Heading).where(
                Heading.article_id == article_id,
                Heading.title.in_(diff.deleted),
            )
        )
    await create_headings(db, article_id, diff.created)
    return diff
