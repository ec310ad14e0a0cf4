# services/proximity.py
from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Tuple

from errors import NotFoundError

EARTH_RADIUS_M = 6371000.0
# spherical model error allowance, relative to the radius
RADIUS_TOLERANCE = 0.001


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dlat = p2 - p1
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * (2 * math.atan2(math.sqrt(a), math.sqrt(1 - a)))


def _valid_coord(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def shops_within_radius(
    origin: Mapping[str, Any],
    candidates: Iterable[Mapping[str, Any]],
    radius_km: float,
) -> List[Tuple[Mapping[str, Any], float]]:
    """
    Return (shop, distance_km) for every candidate within radius_km of origin,
    nearest first.

    The origin itself (same id) and candidates with missing or non-finite
    coordinates are skipped. The raw distance is compared against the radius
    widened by RADIUS_TOLERANCE; the reported distance is rounded to meters.
    """
    o_lat, o_lon = origin["latitude"], origin["longitude"]
    out = []
    for shop in candidates:
        if str(shop["id"]) == str(origin["id"]):
            continue
        lat, lon = shop.get("latitude"), shop.get("longitude")
        if not (_valid_coord(lat) and _valid_coord(lon)):
            continue
        d_km = haversine_m(o_lat, o_lon, lat, lon) / 1000.0
        if d_km <= radius_km * (1 + RADIUS_TOLERANCE):
            out.append((shop, round(d_km, 3)))
    # stable: equal distances keep storage order
    out.sort(key=lambda x: x[1])
    return out


async def find_nearby(repo, origin_id: str, radius_km: float) -> List[Tuple[Mapping[str, Any], float]]:
    """Full scan over every stored shop; fine at directory scale."""
    origin = await repo.find_by_id(origin_id)
    if origin is None:
        raise NotFoundError("Shop not found")
    candidates = await repo.find_all()
    return shops_within_radius(origin, candidates, radius_km)
