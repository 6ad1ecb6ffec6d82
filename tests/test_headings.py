"""
Heading synchronizer tests: combination of heading sources and the
set-difference reconciliation against stored rows.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mdx_articles.errors import ApiError
from mdx_articles.models import Article, Heading
from mdx_articles.services import heading_service


async def _create_article(db: AsyncSession, title: str = "Heading Host") -> Article:
    article = Article(title=title, slug=title.lower().replace(" ", "-"), content_markdown="")
    db.add(article)
    await db.flush()
    return article


async def _titles(db: AsyncSession, article_id: int) -> set[str]:
    result = await db.execute(select(Heading.title).where(Heading.article_id == article_id))
    return set(result.scalars().all())


# ---------------------------------------------------------------------------
# combine_headings
# ---------------------------------------------------------------------------

def test_combine_headings_order_parsed_explicit_title():
    combined = heading_service.combine_headings("# One\n## Two", ["Extra"], "Title")
    assert combined == ["One", "Two", "Extra", "Title"]


def test_combine_headings_removes_duplicates_and_blanks():
    combined = heading_service.combine_headings("# Title\n# One", ["One", "  ", " Two "], "Title")
    assert combined == ["Title", "One", "Two"]


def test_combine_headings_does_not_mutate_inputs():
    explicit = ["A"]
    heading_service.combine_headings("# B", explicit, "C")
    assert explicit == ["A"]


def test_combine_headings_rejects_heading_longer_than_column():
    markdown = f"# Short\n\n# {'x' * (heading_service.HEADING_TITLE_MAX_LENGTH + 1)}"
    with pytest.raises(ApiError) as exc_info:
        heading_service.combine_headings(markdown, [], "Title")
    assert exc_info.value.status_code == 400


def test_combine_headings_accepts_heading_at_column_length():
    longest = "y" * heading_service.HEADING_TITLE_MAX_LENGTH
    assert heading_service.combine_headings(f"# {longest}", [], "Title") == [longest, "Title"]


# ---------------------------------------------------------------------------
# create / sync
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_sync_headings_diff_by_title(db_session: AsyncSession):
    article = await _create_article(db_session)
    await heading_service.create_headings(db_session, article.id, ["A", "B", "C"])
    before = {h.title: h.id for h in await heading_service.get_headings(db_session, article.id)}

    diff = await heading_service.sync_headings(db_session, article.id, ["B", "C", "D"])

    assert diff.deleted == ["A"]
    assert diff.created == ["D"]
    after = {h.title: h.id for h in await heading_service.get_headings(db_session, article.id)}
    assert set(after) == {"B", "C", "D"}
    # Unchanged titles keep their rows.
    assert after["B"] == before["B"]
    assert after["C"] == before["C"]


@pytest.mark.asyncio
async def test_sync_headings_no_changes(db_session: AsyncSession):
    article = await _create_article(db_session)
    await heading_service.create_headings(db_session, article.id, ["A", "B"])

    diff = await heading_service.sync_headings(db_session, article.id, ["B", "A"])

    assert diff.deleted == []
    assert diff.created == []
    assert await _titles(db_session, article.id) == {"A", "B"}


@pytest.mark.asyncio
async def test_sync_headings_scoped_to_article(db_session: AsyncSession):
    """Removing a title from one article must not touch another article's heading."""
    first = await _create_article(db_session, "First Host")
    second = await _create_article(db_session, "Second Host")
    await heading_service.create_headings(db_session, first.id, ["Shared", "Only First"])
    await heading_service.create_headings(db_session, second.id, ["Shared"])

    await heading_service.sync_headings(db_session, first.id, ["Only First"])

    assert await _titles(db_session, first.id) == {"Only First"}
    assert await _titles(db_session, second.id) == {"Shared"}


@pytest.mark.asyncio
async def test_sync_headings_to_empty(db_session: AsyncSession):
    article = await _create_article(db_session)
    await heading_service.create_headings(db_session, article.id, ["A"])

    diff = await heading_service.sync_headings(db_session, article.id, [])

    assert diff.deleted == ["A"]
    assert await _titles(db_session, article.id) == set()


@pytest.mark.asyncio
async def test_create_duplicate_heading_conflict(db_session: AsyncSession):
    article = await _create_article(db_session)
    await heading_service.create_headings(db_session, article.id, ["Dup"])

    with pytest.raises(ApiError) as exc_info:
        await heading_service.create_headings(db_session, article.id, ["Dup"])
    assert exc_info.value.status_code == 409
    await db_session.rollback()
