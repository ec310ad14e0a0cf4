# middlewares/fill_coordinates.py
from fastapi import Depends, Request

from schemas import ShopRegister
from services.geocoder import Geocoder, build_full_address, get_geocoder_from_settings


def get_geocoder(request: Request) -> Geocoder:
    geocoder = getattr(request.app.state, "geocoder", None)
    if geocoder is None:
        geocoder = get_geocoder_from_settings()
        request.app.state.geocoder = geocoder
    return geocoder


async def fill_coordinates(
    payload: ShopRegister,
    geocoder: Geocoder = Depends(get_geocoder),
) -> ShopRegister:
    """
    Registration step run before the handler: when the client did not send
    both latitude and longitude, resolve them from address, city and pincode.
    """
    if payload.has_coordinates:
        return payload
    lat, lon = await geocoder.resolve(build_full_address(payload.address, payload.city, payload.pincode))
    return payload.model_copy(update={"latitude": lat, "longitude": lon})
