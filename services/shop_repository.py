# services/shop_repository.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

import asyncpg
from asyncpg import exceptions as pgerr

from errors import ConflictError

logger = logging.getLogger("uvicorn.error")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS shops (
  id            uuid PRIMARY KEY DEFAULT gen_random_uuid(),
  shop_name     text NOT NULL,
  email         text NOT NULL,
  password_hash text NOT NULL,
  owner_name    text NOT NULL,
  address       text NOT NULL,
  city          text NOT NULL,
  pincode       text NOT NULL,
  latitude      double precision NOT NULL,
  longitude     double precision NOT NULL,
  created_at    timestamptz NOT NULL DEFAULT now(),
  CONSTRAINT shops_email_key UNIQUE (email)
);
CREATE INDEX IF NOT EXISTS shops_normalized_name_idx
  ON shops (lower(regexp_replace(shop_name, '\\s+', '', 'g')));
"""

SHOP_COLUMNS = (
    "id, shop_name, email, password_hash, owner_name, address, city, pincode, "
    "latitude, longitude, created_at"
)

# only these may change after registration
MUTABLE_FIELDS = ("shop_name", "owner_name")


def normalize_shop_name(name: str) -> str:
    """'  Sai  Stores ' -> 'saistores'"""
    return "".join((name or "").split()).lower()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def _row_to_shop(r: Optional[asyncpg.Record]) -> Optional[Dict[str, Any]]:
    if r is None:
        return None
    shop = dict(r)
    shop["id"] = str(shop["id"])
    return shop


async def ensure_schema(pool: asyncpg.pool.Pool) -> None:
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_SQL)


class ShopRepository:
    """asyncpg-backed store for shop records."""

    def __init__(self, pool: asyncpg.pool.Pool):
        self.pool = pool

    async def create(self, shop: Dict[str, Any]) -> Dict[str, Any]:
        email = normalize_email(shop["email"])
        async with self.pool.acquire() as conn:
            exists = await conn.fetchrow("SELECT 1 FROM shops WHERE email = $1", email)
            if exists:
                raise ConflictError("Shop already exists")
            try:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO shops (shop_name, email, password_hash, owner_name,
                                       address, city, pincode, latitude, longitude)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    RETURNING {SHOP_COLUMNS}
                    """,
                    shop["shop_name"], email, shop["password_hash"], shop["owner_name"],
                    shop["address"], shop["city"], shop["pincode"],
                    float(shop["latitude"]), float(shop["longitude"]),
                )
            except pgerr.UniqueViolationError:
                # lost the race against a concurrent registration
                logger.warning("Duplicate email rejected by constraint")
                raise ConflictError("Shop already exists")
        return _row_to_shop(row)

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {SHOP_COLUMNS} FROM shops WHERE email = $1", normalize_email(email)
            )
        return _row_to_shop(row)

    async def find_by_id(self, shop_id: Any) -> Optional[Dict[str, Any]]:
        sid = _as_uuid(shop_id)
        if sid is None:
            return None
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT {SHOP_COLUMNS} FROM shops WHERE id = $1", sid)
        return _row_to_shop(row)

    async def find_by_normalized_name(self, name: str) -> List[Dict[str, Any]]:
        key = normalize_shop_name(name)
        if not key:
            return []
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {SHOP_COLUMNS} FROM shops
                WHERE lower(regexp_replace(shop_name, '\\s+', '', 'g')) = $1
                ORDER BY created_at, id
                """,
                key,
            )
        return [_row_to_shop(r) for r in rows]

    async def find_all(self) -> List[Dict[str, Any]]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(f"SELECT {SHOP_COLUMNS} FROM shops ORDER BY created_at, id")
        return [_row_to_shop(r) for r in rows]

    async def update(self, shop_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply the mutable subset of `fields`; everything else is ignored.
        Returns the updated shop, or None when the id does not resolve.
        """
        changes = {k: v for k, v in fields.items() if k in MUTABLE_FIELDS and v is not None}
        if not changes:
            raise ValueError("No mutable fields to update")
        sid = _as_uuid(shop_id)
        if sid is None:
            return None

        cols = list(changes)
        assignments = ", ".join(f"{c} = ${i}" for i, c in enumerate(cols, start=2))
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"UPDATE shops SET {assignments} WHERE id = $1 RETURNING {SHOP_COLUMNS}",
                sid, *[changes[c] for c in cols],
            )
        return _row_to_shop(row)

    async def delete(self, shop_id: Any) -> Optional[Dict[str, Any]]:
        sid = _as_uuid(shop_id)
        if sid is None:
            return None
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(f"DELETE FROM shops WHERE id = $1 RETURNING {SHOP_COLUMNS}", sid)
        return _row_to_shop(row)
