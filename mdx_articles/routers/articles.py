from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from mdx_articles.database import get_db
from mdx_articles.dependencies import parse_id_list, parse_payload, prepare_temp_dir, stage_uploads
from mdx_articles.schemas import (
    ArticleContent,
    ArticleCreate,
    ArticleFilters,
    ArticlePreview,
    ArticleResponse,
    ArticleUpdate,
    ArticleUpdateResponse,
    BulkDeleteResult,
    SearchResult,
)
from mdx_articles.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

# POST rather than GET: filter payloads can be large.
@router.post("/filtered", response_model=list[ArticlePreview])
async def filter_articles(filters: ArticleFilters, db: AsyncSession = Depends(get_db)):
    return await article_service.get_filtered_articles(db, filters)

@router.get("/content/{article_id}", response_model=ArticleContent)
async def get_article_content(article_id: int, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article_content(db, article_id)

@router.get("/search/{content}", response_model=SearchResult)
async def search_article(content: str, db: AsyncSession = Depends(get_db)):
    return await article_service.search_article_by_content(db, content)

@router.get("/{article_id}", response_model=ArticlePreview)
async def get_article(article_id: int, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article(db, article_id)

@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: str = Form(..., description="JSON encoded article payload."),
    files: list[UploadFile] = File(default=[]),
    temp_dir: Path = Depends(prepare_temp_dir),
    db: AsyncSession = Depends(get_db),
):
    payload = parse_payload(ArticleCreate, data)
    uploads = stage_uploads(files, temp_dir)
    return await article_service.create_article(db, payload, uploads)

@router.put("/{article_id}", response_model=ArticleUpdateResponse)
async def update_article(
    article_id: int,
    data: str = Form(..., description="JSON encoded partial article payload."),
    files: list[UploadFile] = File(default=[]),
    temp_dir: Path = Depends(prepare_temp_dir),
    db: AsyncSession = Depends(get_db),
):
    payload = parse_payload(ArticleUpdate, data)
    uploads = stage_uploads(files, temp_dir)
    return await article_service.update_article(db, article_id, payload, uploads)

@router.delete("/bulk", response_model=BulkDeleteResult)
async def bulk_delete_articles(
    ids: list[int] = Depends(parse_id_list),
    db: AsyncSession = Depends(get_db),
):
    result = await article_service.bulk_delete_articles(db, ids)
    return JSONResponse(status_code=result["status"], content=jsonable_encoder(result))
