import asyncio
import math

import pytest

from errors import NotFoundError
from services.proximity import find_nearby, haversine_m, shops_within_radius


def _shop(shop_id, lat, lon):
    return {"id": shop_id, "shop_name": shop_id, "latitude": lat, "longitude": lon}


def test_haversine_one_degree_of_latitude():
    assert haversine_m(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)
    assert haversine_m(48.85, 2.35, 48.85, 2.35) == 0


def test_five_km_east_on_equator_is_inside_five_but_not_four():
    a = _shop("a", 0.0, 0.0)
    b = _shop("b", 0.0, 0.045)

    found = shops_within_radius(a, [a, b], 5)
    assert [s["id"] for s, _ in found] == ["b"]
    assert found[0][1] == pytest.approx(5.0, abs=0.01)

    assert shops_within_radius(a, [a, b], 4) == []


@pytest.mark.parametrize("radius", [0, 0.5, 5, 100, 20_000])
def test_origin_is_never_its_own_neighbour(radius):
    a = _shop("a", 10.0, 10.0)
    twin = _shop("twin", 10.0, 10.0)
    found = shops_within_radius(a, [a, twin, dict(a)], radius)
    assert [s["id"] for s, _ in found] == ["twin"]
    assert found[0][1] == 0


def test_malformed_coordinates_are_skipped():
    a = _shop("a", 0.0, 0.0)
    candidates = [
        _shop("none", None, 0.0),
        _shop("nan", 0.0, math.nan),
        _shop("text", "0.01", 0.0),
        _shop("inf", math.inf, 0.0),
        _shop("ok", 0.01, 0.0),
    ]
    found = shops_within_radius(a, candidates, 5)
    assert [s["id"] for s, _ in found] == ["ok"]


def test_results_are_nearest_first():
    a = _shop("a", 0.0, 0.0)
    far = _shop("far", 0.0, 0.04)
    near = _shop("near", 0.0, 0.01)
    mid = _shop("mid", 0.02, 0.0)
    found = shops_within_radius(a, [far, near, mid], 5)
    assert [s["id"] for s, _ in found] == ["near", "mid", "far"]
    assert [d for _, d in found] == sorted(d for _, d in found)


def test_find_nearby_requires_existing_origin(repo):
    with pytest.raises(NotFoundError):
        asyncio.run(find_nearby(repo, "missing", 5))


def test_find_nearby_scans_the_store(repo):
    async def scenario():
        base = {
            "email": "", "password_hash": "x", "owner_name": "o",
            "address": "a", "city": "c", "pincode": "p",
        }
        a = await repo.create({**base, "email": "a@x.io", "shop_name": "A", "latitude": 0.0, "longitude": 0.0})
        await repo.create({**base, "email": "b@x.io", "shop_name": "B", "latitude": 0.0, "longitude": 0.045})
        await repo.create({**base, "email": "c@x.io", "shop_name": "C", "latitude": 1.0, "longitude": 1.0})
        return await find_nearby(repo, a["id"], 5)

    found = asyncio.run(scenario())
    assert [s["shop_name"] for s, _ in found] == ["B"]


def test_zero_radius_excludes_a_shop_a_few_meters_away():
    a = _shop("a", 0.0, 0.0)
    b = _shop("b", 0.0, 0.00004)
    assert shops_within_radius(a, [a, b], 0) == []

    found = shops_within_radius(a, [a, b], 0.01)
    assert found[0][1] == pytest.approx(0.004, abs=0.0005)


def test_tolerance_is_relative_to_radius():
    a = _shop("a", 0.0, 0.0)
    # about 10.012 km east: just over 10 km plus the 0.1% allowance
    just_out = _shop("out", 0.0, 0.09004)
    assert shops_within_radius(a, [just_out], 10) == []
    assert shops_within_radius(a, [just_out], 10.5)[0][1] == pytest.approx(10.012, abs=0.001)
