# schemas.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # wire format is camelCase (shopName, ownerName, ...); python side stays snake_case
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


# ===== Inputs =====
class ShopRegister(CamelModel):
    shop_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    owner_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class LoginIn(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ShopUpdate(CamelModel):
    shop_name: Optional[str] = None
    owner_name: Optional[str] = None

    def changes(self) -> Dict[str, str]:
        """Non-blank mutable fields only."""
        return {k: v for k, v in (("shop_name", self.shop_name), ("owner_name", self.owner_name)) if v}


# ===== Outputs =====
class ShopOut(CamelModel):
    id: str
    shop_name: str
    email: str
    owner_name: str
    address: str
    city: str
    pincode: str
    latitude: float
    longitude: float
    created_at: datetime


class NearbyShopOut(ShopOut):
    distance_in_km: float


def shop_out(shop: Dict[str, Any]) -> Dict[str, Any]:
    """Public JSON view of a stored shop; the password hash never leaves."""
    return ShopOut.model_validate(shop).model_dump(by_alias=True, mode="json")


def nearby_out(shop: Dict[str, Any], distance_km: float) -> Dict[str, Any]:
    return NearbyShopOut.model_validate({**shop, "distance_in_km": distance_km}).model_dump(
        by_alias=True, mode="json"
    )
