import logging
import shutil
from collections.abc import AsyncIterator
from pathlib import Path

from fastapi import Query, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from mdx_articles import storage
from mdx_articles.errors import ApiError
from mdx_articles.services.file_service import UploadBundle

logger = logging.getLogger(__name__)


async def prepare_temp_dir() -> AsyncIterator[Path]:
    """
    FastAPI dependency that provides an empty staging directory for the
    uploads of one request and removes it afterwards.
    """
    try:
        path = storage.create_temp_dir()
    except OSError as exc:
        logger.error("Could not create upload staging directory: %s", exc)
        raise ApiError.internal("Server has not prepared necessary dirs") from exc
    try:
        yield path
    finally:
        storage.remove_dir(path)


def parse_id_list(
    ids: str = Query(..., description="Comma separated article ids, e.g. 1,2,3."),
) -> list[int]:
    """Parse the ``ids`` query parameter into a list of positive integers."""
    try:
        values = [int(part) for part in ids.split(",")]
    except ValueError:
        raise ApiError.bad_request("ids must be a comma separated list of integers")
    if any(value <= 0 for value in values):
        raise ApiError.bad_request("ids must be positive integers")
    return values


def parse_payload(model: type[BaseModel], raw: str):
    """Validate the JSON ``data`` form field of a multipart request against *model*."""
    try:
        return model.model_validate_json(raw)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False))


def stage_uploads(files: list[UploadFile], temp_dir: Path) -> UploadBundle | None:
    """
    Write the uploaded *files* into *temp_dir*.

    Returns None when nothing was uploaded, so the caller skips file
    processing entirely.
    """
    filenames: list[str] = []
    for upload in files:
        if not upload.filename:
            continue
        name = Path(upload.filename).name
        with open(temp_dir / name, "wb") as fh:
            shutil.copyfileobj(upload.file, fh)
        filenames.append(name)
    if not filenames:
        return None
    return UploadBundle(temp_dir=temp_dir, filenames=filenames)
