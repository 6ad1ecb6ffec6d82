import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from mdx_articles.cache import cache
from mdx_articles.config import settings
from mdx_articles.errors import ApiError
from mdx_articles.middleware import RequestTimingMiddleware
from mdx_articles.routers import articles, metrics

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        await cache.connect()
    except Exception as exc:
        # Articles are still served without Redis; content reads will miss.
        logger.warning("Cache unavailable: %s", exc)
    yield
    await cache.disconnect()


app = FastAPI(
    title="MDX Articles API",
    description="Markdown articles with rendered-content cache, headings and attachments",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(articles.router)
app.include_router(metrics.router)
app.mount(
    settings.MEDIA_URL,
    StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False),
    name="media",
)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
