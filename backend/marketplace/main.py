import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
import redis

from marketplace.core.config import settings
from marketplace.core.errors import MarketplaceError
from marketplace.api.v1.router import api_router
from marketplace.core.db import AsyncSessionLocal

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.APP_NAME)

if settings.cors_origins_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    logger.info("request rejected path=%s status=%s err=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    # a concurrent request won a unique constraint (cart line, wallet, ledger dedup key)
    logger.warning("integrity conflict path=%s err=%s", request.url.path, str(exc.orig)[:200])
    return JSONResponse(status_code=409, content={"detail": "Conflicting concurrent update, please retry"})


@app.get("/api/docs", include_in_schema=False)
async def docs_alias():
    return RedirectResponse(url="/docs")


@app.get("/api/openapi.json", include_in_schema=False)
async def openapi_alias():
    return JSONResponse(app.openapi())


async def _db_ok() -> bool:
    try:
        async with AsyncSessionLocal() as s:
            await s.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("health db check failed err=%s", str(e)[:200])
        return False


def _redis_ok() -> bool:
    try:
        return bool(redis.Redis.from_url(settings.REDIS_URL).ping())
    except redis.RedisError as e:
        logger.warning("health redis check failed err=%s", str(e)[:200])
        return False


@app.get("/health")
async def health():
    db_ok = await _db_ok()
    redis_ok = _redis_ok()
    return {"status": "ok" if db_ok and redis_ok else "degraded", "db_ok": db_ok, "redis_ok": redis_ok}
