from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, status

from .geocoding import format_address, get_geocoder
from .schemas import ReverseGeocodeRequest
from .viacep import ViaCepClient


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/location", tags=["location"])


@router.get("/cep/{cep}")
def lookup_cep(cep: str):
    try:
        address = ViaCepClient().lookup(cep)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if address is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="CEP não encontrado")

    coords = get_geocoder().geocode(address.city, address.state, address.street)
    return {
        **asdict(address),
        "lat": coords.lat if coords else None,
        "lng": coords.lng if coords else None,
        "formattedAddress": format_address(address.city, address.state, address.neighborhood, address.street),
    }


@router.get("/geocode")
def geocode(city: str, state: str, street: str | None = None):
    coords = get_geocoder().geocode(city, state, street)
    if coords is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Localização não encontrada")
    return {"lat": coords.lat, "lng": coords.lng, "displayName": coords.display_name}


@router.post("/reverse-geocode")
def reverse_geocode(data: ReverseGeocodeRequest):
    result = get_geocoder().reverse(data.lat, data.lng)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Localização não encontrada")
    return {
        "city": result.city,
        "state": result.state,
        "neighborhood": result.neighborhood,
        "street": result.street,
        "displayName": result.display_name,
        "lat": result.lat,
        "lng": result.lng,
        "formattedAddress": format_address(result.city, result.state, result.neighborhood, result.street),
    }
