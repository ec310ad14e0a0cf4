# main.py
import os
import sys
import logging
import asyncpg
import aiohttp
import traceback
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

# Ensure app root on path
APP_ROOT = os.path.dirname(os.path.abspath(__file__))
if APP_ROOT not in sys.path:
    sys.path.insert(0, APP_ROOT)

from settings import (
    ENABLE_DOCS, ALLOW_ORIGINS, DATABASE_URL, DB_CONNECT_TIMEOUT,
    JWT_SECRET, LOG_REQUESTS,
)

from auth import init_signing_secret, reset_signing_secret
from errors import InternalError
from services.geocoder import get_geocoder_from_settings
from services.shop_repository import ensure_schema

# Routers
from shops import router as shops_router

logger = logging.getLogger("uvicorn.error")

app = FastAPI(
    title="Shop Directory",
    version="1.0.0",
    docs_url="/docs" if ENABLE_DOCS else None,
    redoc_url="/redoc" if ENABLE_DOCS else None,
    openapi_url="/openapi.json" if ENABLE_DOCS else None,
)

# ---- log full tracebacks so 500s aren't silent ----
class TraceLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error("\n===== UNCAUGHT EXCEPTION =====")
            logger.error("Path: %s %s", request.method, request.url.path)
            logger.error(traceback.format_exc())
            logger.error("===== END TRACE =====\n")
            raise
app.add_middleware(TraceLogMiddleware)
# ---------------------------------------------------

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["Authorization", "Content-Type"],
)


# ---- error mapping ----
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # missing/malformed input is a plain 400 here, not FastAPI's 422
    return JSONResponse(
        status_code=400,
        content={"detail": "Missing or invalid fields", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(asyncpg.PostgresError)
async def database_error_handler(request: Request, exc: asyncpg.PostgresError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    err = InternalError()
    return JSONResponse(status_code=err.status_code, content={"detail": err.detail})


# Secret, geocoder and DB pool
@app.on_event("startup")
async def startup():
    init_signing_secret(JWT_SECRET)
    # one HTTP session for all geocoding calls, closed on shutdown
    app.state.geocoder = get_geocoder_from_settings(session=aiohttp.ClientSession())

    if not DATABASE_URL:
        app.state.db = None
        logger.warning("⚠️ DATABASE_URL not set; data routes will answer 503")
        return
    try:
        app.state.db = await asyncpg.create_pool(DATABASE_URL, timeout=DB_CONNECT_TIMEOUT)
        await ensure_schema(app.state.db)
        logger.info("✅ DB pool created")
    except Exception as e:
        app.state.db = None
        logger.error(f"⚠️ Failed to connect to DB at startup: {e}")

@app.on_event("shutdown")
async def shutdown():
    reset_signing_secret()
    try:
        if getattr(app.state, "geocoder", None):
            await app.state.geocoder.close()
        if getattr(app.state, "db", None):
            await app.state.db.close()
            logger.info("🔌 DB pool closed")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")

# -------- Router mounts --------
app.include_router(shops_router)             # /api/shops/...

# health
@app.get("/healthz", response_class=PlainTextResponse)
async def healthz():
    return "ok"

# Optional request logging
if LOG_REQUESTS:
    @app.middleware("http")
    async def _req_logger(request, call_next):
        logger.info(f"➡ {request.method} {request.url.path} from {request.client.host if request.client else 'unknown'}")
        resp = await call_next(request)
        logger.info(f"⬅ {request.method} {request.url.path} -> {resp.status_code}")
        return resp


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="debug",
    )
