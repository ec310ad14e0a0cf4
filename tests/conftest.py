import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

import auth
from errors import ConflictError, ProviderError, AddressNotFoundError
from main import app
from middlewares.fill_coordinates import get_geocoder
from services.shop_repository import MUTABLE_FIELDS, normalize_email, normalize_shop_name
from shops import get_shop_repository


class InMemoryShopRepository:
    """Same contract as ShopRepository, backed by a list."""

    def __init__(self):
        self.rows = []

    async def create(self, shop):
        email = normalize_email(shop["email"])
        if any(r["email"] == email for r in self.rows):
            raise ConflictError("Shop already exists")
        row = {
            **shop,
            "email": email,
            "id": str(uuid.uuid4()),
            "created_at": datetime.now(timezone.utc),
        }
        self.rows.append(row)
        return dict(row)

    async def find_by_email(self, email):
        email = normalize_email(email)
        return next((dict(r) for r in self.rows if r["email"] == email), None)

    async def find_by_id(self, shop_id):
        return next((dict(r) for r in self.rows if r["id"] == str(shop_id)), None)

    async def find_by_normalized_name(self, name):
        key = normalize_shop_name(name)
        return [dict(r) for r in self.rows if normalize_shop_name(r["shop_name"]) == key]

    async def find_all(self):
        return [dict(r) for r in self.rows]

    async def update(self, shop_id, fields):
        changes = {k: v for k, v in fields.items() if k in MUTABLE_FIELDS and v is not None}
        if not changes:
            raise ValueError("No mutable fields to update")
        for r in self.rows:
            if r["id"] == str(shop_id):
                r.update(changes)
                return dict(r)
        return None

    async def delete(self, shop_id):
        for i, r in enumerate(self.rows):
            if r["id"] == str(shop_id):
                return dict(self.rows.pop(i))
        return None


class StubGeocoder:
    def __init__(self, result=(12.9716, 77.5946)):
        self.result = result
        self.queries = []

    async def resolve(self, query):
        self.queries.append(query)
        if self.result == "miss":
            raise AddressNotFoundError()
        if self.result == "error":
            raise ProviderError()
        return self.result


@pytest.fixture(autouse=True)
def signing_secret():
    auth.init_signing_secret("test-secret")
    yield "test-secret"
    auth.reset_signing_secret()


@pytest.fixture()
def repo():
    return InMemoryShopRepository()


@pytest.fixture()
def geocoder():
    return StubGeocoder()


@pytest.fixture()
def client(repo, geocoder):
    app.dependency_overrides[get_shop_repository] = lambda: repo
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    yield TestClient(app)
    app.dependency_overrides.clear()


def shop_payload(**overrides):
    body = {
        "shopName": "Sai Stores",
        "email": "owner@example.com",
        "password": "s3cret-pass",
        "ownerName": "Sai Kumar",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "pincode": "560001",
        "latitude": 0.0,
        "longitude": 0.0,
    }
    body.update(overrides)
    return {k: v for k, v in body.items() if v is not None}
