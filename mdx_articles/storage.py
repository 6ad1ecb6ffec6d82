"""
Filesystem storage for article attachments.

Uploads are staged in a per-request temporary directory and moved into
``MEDIA_ROOT/articles/<article id>/`` under a generated unique name. Paths
recorded in the database are relative to ``MEDIA_ROOT``.
"""
import logging
import shutil
import uuid
from pathlib import Path

from mdx_articles.config import settings

logger = logging.getLogger(__name__)

ARTICLES_FOLDER = "articles"


def media_root() -> Path:
    return Path(settings.MEDIA_ROOT)


def generate_unique_id() -> str:
    return uuid.uuid4().hex


def article_dir(article_id: int) -> Path:
    return media_root() / ARTICLES_FOLDER / str(article_id)


def create_dir(article_id: int) -> Path:
    """Ensure the permanent directory for *article_id* exists and return it."""
    path = article_dir(article_id)
    path.mkdir(parents=True, exist_ok=True)
    return path


def create_temp_dir() -> Path:
    """Create a fresh staging directory for one upload request."""
    path = Path(settings.UPLOAD_TEMP_ROOT) / generate_unique_id()
    path.mkdir(parents=True, exist_ok=False)
    return path


def move_to_final(temp_dir: Path, filename: str, article_id: int, unique_id: str) -> Path:
    """
    Move *filename* from *temp_dir* into the article's permanent directory.

    The stored name is *unique_id* plus the original extension. Raises
    ``FileNotFoundError`` when the staged file is missing.
    """
    source = Path(temp_dir) / filename
    if not source.is_file():
        raise FileNotFoundError(f"Staged upload {filename!r} not found in {temp_dir}")
    destination = create_dir(article_id) / f"{unique_id}{source.suffix.lower()}"
    shutil.move(str(source), str(destination))
    return destination


def relative_path(path: Path) -> str:
    """Return *path* relative to ``MEDIA_ROOT`` using forward slashes."""
    return Path(path).resolve().relative_to(media_root().resolve()).as_posix()


def absolute_path(relative: str) -> Path:
    return media_root() / relative


def remove_file(path: Path) -> None:
    """Remove a stored file; a missing file is not an error."""
    try:
        Path(path).unlink()
    except FileNotFoundError:
        logger.debug("File already removed: %s", path)


def remove_dir(path: Path) -> None:
    """Remove a directory tree; a missing directory is not an error."""
    shutil.rmtree(path, ignore_errors=True)
