"""
File synchronizer: persists the uploaded files an article actually
references and discards the rest.

Moving a file into permanent storage cannot be undone by a database
rollback, so every move is registered as a compensation on the caller's
``Transaction``. Per-file failures are logged and skipped; the staging
directory is always removed.
"""
import functools
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mdx_articles import storage
from mdx_articles.errors import ApiError
from mdx_articles.models import ArticleFile
from mdx_articles.schemas import FileInfo
from mdx_articles.services.transaction import Transaction

logger = logging.getLogger(__name__)


@dataclass
class UploadBundle:
    """Files staged for one request: a temporary directory and the names in it."""

    temp_dir: Path
    filenames: list[str] = field(default_factory=list)


async def save_uploads(
    db: AsyncSession,
    tx: Transaction,
    bundle: UploadBundle,
    article_id: int,
    referenced: Iterable[str],
) -> list[FileInfo]:
    """
    Move every upload in *bundle* whose name appears (case-insensitively) in
    *referenced* to permanent storage and record it for *article_id*.

    Returns the saved files for rendering.
    """
    wanted = {name.lower() for name in referenced}
    saved: list[FileInfo] = []
    try:
        for filename in bundle.filenames:
            if filename.lower() not in wanted:
                logger.debug("Upload %r is not referenced by article %d, discarded", filename, article_id)
                continue

            final_path: Path | None = None
            try:
                taken = await db.scalar(
                    select(ArticleFile.id).where(ArticleFile.original_name == filename)
                )
                if taken is not None:
                    raise ApiError.conflict(f"A file named {filename!r} is already stored")
                final_path = storage.move_to_final(
                    bundle.temp_dir, filename, article_id, storage.generate_unique_id()
                )
                path = storage.relative_path(final_path)
            except (OSError, ApiError) as exc:
                logger.warning("File %r was not saved for article %d: %s", filename, article_id, exc)
                if final_path is not None:
                    storage.remove_file(final_path)
                continue

            db.add(ArticleFile(article_id=article_id, path=path, original_name=filename))
            tx.on_rollback(functools.partial(storage.remove_file, final_path))
            saved.append(FileInfo(original_name=filename, path=path))

        if saved:
            await db.flush()
    finally:
        storage.remove_dir(bundle.temp_dir)
    return saved


async def delete_files(
    db: AsyncSession,
    tx: Transaction,
    article_id: int,
    file_ids: Iterable[int],
) -> list[int]:
    """
    Delete the records of *file_ids* owned by *article_id*; unknown ids and
    files of other articles are skipped. Stored artifacts are removed once
    the transaction commits.

    Returns the ids that were deleted.
    """
    deleted: list[int] = []
    for file_id in file_ids:
        file = await db.get(ArticleFile, file_id)
        if file is None or file.article_id != article_id:
            logger.debug("File %d not found for article %d, skipped", file_id, article_id)
            continue
        await db.delete(file)
        tx.after_commit(functools.partial(storage.remove_file, storage.absolute_path(file.path)))
        deleted.append(file_id)

    if deleted:
        await db.flush()
    return deleted
