# settings.py
import os
from dotenv import load_dotenv
from fastapi import Request, HTTPException
import asyncpg

load_dotenv()

# -----------------------------------------------------------------------------
# Core app settings
# -----------------------------------------------------------------------------
ENV = (os.getenv("ENV") or "development").lower()
ENABLE_DOCS = ENV != "production"

APP_WEB_ORIGIN = (os.getenv("APP_WEB_ORIGIN") or "").strip()
ALLOW_ORIGINS = [o.strip() for o in APP_WEB_ORIGIN.split(",") if o.strip()] or ["*"]

DATABASE_URL = os.getenv("DATABASE_URL")
DB_CONNECT_TIMEOUT = float(os.getenv("DB_CONNECT_TIMEOUT", "8"))

LOG_REQUESTS = (os.getenv("LOG_REQUESTS") or "").lower() in {"1", "true", "yes"}

# -----------------------------------------------------------------------------
# Credentials
# -----------------------------------------------------------------------------
# No default on purpose: startup refuses to run without a secret.
JWT_SECRET = (os.getenv("JWT_SECRET") or "").strip() or None
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
TOKEN_EXPIRE_DAYS = int(os.getenv("TOKEN_EXPIRE_DAYS", "30"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# -----------------------------------------------------------------------------
# Geocoding
# -----------------------------------------------------------------------------
GEOCODER_PROVIDER = (os.getenv("GEOCODER_PROVIDER") or "nominatim").lower()
GEOCODER_API_KEY = (os.getenv("GEOCODER_API_KEY") or "").strip() or None
GEOCODER_URL = (os.getenv("GEOCODER_URL") or "").strip() or None
# Nominatim policy wants an identifying agent, ideally with a contact address
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "shop-directory/1.0")
GEOCODER_TIMEOUT = float(os.getenv("GEOCODER_TIMEOUT", "10"))

# -----------------------------------------------------------------------------
# Proximity
# -----------------------------------------------------------------------------
NEARBY_RADIUS_KM = float(os.getenv("NEARBY_RADIUS_KM", "5"))

# -----------------------------------------------------------------------------
# Helpers for accessing app state in routes
# -----------------------------------------------------------------------------
def get_db_pool(request: Request) -> asyncpg.pool.Pool:
    """
    Dependency to fetch the asyncpg pool from app.state.
    Raises HTTPException if the pool is missing (e.g., before startup).
    """
    pool = getattr(request.app.state, "db", None)
    if pool is None:
        raise HTTPException(status_code=503, detail="Database not ready")
    return pool
