from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from mdx_articles.database import get_db
from mdx_articles.models import Article, ArticleFile, Heading
from mdx_articles.schemas import MetricsResponse
from mdx_articles.cache import cache

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(db: AsyncSession = Depends(get_db)):
    total_articles = (await db.execute(select(func.count()).select_from(Article))).scalar_one()
    total_headings = (await db.execute(select(func.count()).select_from(Heading))).scalar_one()
    total_files = (await db.execute(select(func.count()).select_from(ArticleFile))).scalar_one()

    return MetricsResponse(
        total_articles=total_articles,
        total_headings=total_headings,
        total_files=total_files,
        cache_info=cache.stats,
    )
