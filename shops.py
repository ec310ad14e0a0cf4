# shops.py
import logging
from typing import Optional

import asyncpg
from fastapi import APIRouter, Depends, Query, status

from auth import check_password, create_access_token, get_current_shop_id, hash_password
from errors import AuthError, NotFoundError, ValidationError
from middlewares.fill_coordinates import fill_coordinates
from schemas import LoginIn, ShopRegister, ShopUpdate, nearby_out, shop_out
from services.proximity import find_nearby
from services.shop_repository import ShopRepository
from settings import NEARBY_RADIUS_KM, get_db_pool

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api/shops", tags=["shops"])


def get_shop_repository(pool: asyncpg.pool.Pool = Depends(get_db_pool)) -> ShopRepository:
    return ShopRepository(pool)


# ===== Public routes =====
@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: ShopRegister = Depends(fill_coordinates),
    repo: ShopRepository = Depends(get_shop_repository),
):
    shop = await repo.create({
        "shop_name": payload.shop_name,
        "email": payload.email,
        "password_hash": await hash_password(payload.password),
        "owner_name": payload.owner_name,
        "address": payload.address,
        "city": payload.city,
        "pincode": payload.pincode,
        "latitude": payload.latitude,
        "longitude": payload.longitude,
    })
    logger.info("Registered shop %s", shop["id"])
    return shop_out(shop)


@router.post("/login")
async def login(payload: LoginIn, repo: ShopRepository = Depends(get_shop_repository)):
    shop = await repo.find_by_email(payload.email)
    # same answer for unknown email and wrong password
    if not shop or not await check_password(payload.password, shop["password_hash"]):
        raise AuthError("Invalid email or password", status_code=status.HTTP_400_BAD_REQUEST)

    token = create_access_token(shop["id"])
    return {"message": "Login Success", "token": token, **shop_out(shop)}


@router.get("/search/{shop_name}")
async def search_shop_by_name(shop_name: str, repo: ShopRepository = Depends(get_shop_repository)):
    if not shop_name.strip():
        raise ValidationError("Shop name is required")
    shops = await repo.find_by_normalized_name(shop_name)
    if not shops:
        raise NotFoundError("Shop not found")
    return [shop_out(s) for s in shops]


@router.get("/allshops")
async def browse_all_shops(repo: ShopRepository = Depends(get_shop_repository)):
    shops = await repo.find_all()
    if not shops:
        raise NotFoundError("No shops found")
    return [shop_out(s) for s in shops]


# ===== Authenticated routes =====
@router.get("/nearme")
async def browse_shops_within_radius(
    shop_id: str = Depends(get_current_shop_id),
    radius_km: Optional[float] = Query(None, ge=0, le=100, description="Search radius in km"),
    repo: ShopRepository = Depends(get_shop_repository),
):
    radius = NEARBY_RADIUS_KM if radius_km is None else radius_km
    found = await find_nearby(repo, shop_id, radius)
    return {"nearbyShops": [nearby_out(s, d) for s, d in found]}


@router.put("/update")
async def update_shop_details(
    payload: ShopUpdate,
    shop_id: str = Depends(get_current_shop_id),
    repo: ShopRepository = Depends(get_shop_repository),
):
    changes = payload.changes()
    if not changes:
        raise ValidationError("No updates provided")

    updated = await repo.update(shop_id, changes)
    if updated is None:
        raise NotFoundError("Shop not found")
    return {"message": "Shop details updated successfully", "shop": shop_out(updated)}


@router.delete("/delete")
async def delete_shop(
    shop_id: str = Depends(get_current_shop_id),
    repo: ShopRepository = Depends(get_shop_repository),
):
    deleted = await repo.delete(shop_id)
    if deleted is None:
        raise NotFoundError("Shop not found")
    logger.info("Deleted shop %s", shop_id)
    return {"message": "Shop deleted successfully", "shop": shop_out(deleted)}
