# auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header
from starlette.concurrency import run_in_threadpool
from passlib.context import CryptContext
from jose import JWTError, jwt

from errors import AuthError
from settings import BCRYPT_ROUNDS, JWT_ALGORITHM, TOKEN_EXPIRE_DAYS

# ===== Password hashing =====
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # unrecognised or corrupt hash: treat as a mismatch
        return False


# async variants run bcrypt in the threadpool
async def hash_password(password: str) -> str:
    return await run_in_threadpool(get_password_hash, password)


async def check_password(plain_password: str, hashed_password: str) -> bool:
    return await run_in_threadpool(verify_password, plain_password, hashed_password)


# ===== Signing secret (process-wide, set once at startup) =====
_signing_secret: Optional[str] = None


def init_signing_secret(secret: Optional[str]) -> None:
    global _signing_secret
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    _signing_secret = secret


def reset_signing_secret() -> None:
    global _signing_secret
    _signing_secret = None


def _secret() -> str:
    if _signing_secret is None:
        raise RuntimeError("Signing secret not initialized; call init_signing_secret() at startup")
    return _signing_secret


# ===== Session tokens =====
def create_access_token(shop_id: str, now: Optional[datetime] = None) -> str:
    """
    Issue a signed bearer token whose subject is the shop id.
    `now` is the issuance time; it defaults to the current UTC time.
    """
    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(shop_id),
        "iat": issued,
        "exp": issued + timedelta(days=TOKEN_EXPIRE_DAYS),
    }
    return jwt.encode(claims, _secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Return the shop id carried by `token`.
    Bad signature, malformed token, expiry or a missing subject all raise
    the same AuthError.
    """
    try:
        payload = jwt.decode(token, _secret(), algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise AuthError("token or session expired")
    shop_id = payload.get("sub")
    if not shop_id:
        raise AuthError("token or session expired")
    return shop_id


# ===== Auth dependency =====
async def get_current_shop_id(authorization: str = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Missing or invalid token")

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise AuthError("Missing or invalid token")
    return decode_access_token(token)
