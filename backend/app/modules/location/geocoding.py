"""Forward and reverse geocoding for Brazilian addresses.

Nominatim is the default provider; Google is used when ``GEOCODING_PROVIDER``
is ``google`` and a key is configured. Lookups never raise on network
errors, they return ``None`` and log.
"""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from typing import Any

import requests
from requests import RequestException

from app.core.config import settings


logger = logging.getLogger(__name__)

USER_AGENT = "Cuidly/1.0 (https://cuidly.com)"
GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

STATE_UF = {
    "acre": "AC",
    "alagoas": "AL",
    "amapa": "AP",
    "amazonas": "AM",
    "bahia": "BA",
    "ceara": "CE",
    "distrito federal": "DF",
    "espirito santo": "ES",
    "goias": "GO",
    "maranhao": "MA",
    "mato grosso": "MT",
    "mato grosso do sul": "MS",
    "minas gerais": "MG",
    "para": "PA",
    "paraiba": "PB",
    "parana": "PR",
    "pernambuco": "PE",
    "piaui": "PI",
    "rio de janeiro": "RJ",
    "rio grande do norte": "RN",
    "rio grande do sul": "RS",
    "rondonia": "RO",
    "roraima": "RR",
    "santa catarina": "SC",
    "sao paulo": "SP",
    "sergipe": "SE",
    "tocantins": "TO",
}


@dataclass
class Coordinates:
    lat: float
    lng: float
    display_name: str | None = None


@dataclass
class ReverseGeocodeResult:
    city: str
    state: str
    neighborhood: str | None
    street: str | None
    display_name: str
    lat: float
    lng: float


def _strip_accents(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def state_to_uf(state: str | None) -> str:
    if not state:
        return ""
    state = state.strip()
    if len(state) == 2:
        return state.upper()
    return STATE_UF.get(_strip_accents(state).lower(), state)


def build_query(city: str, state: str, street: str | None = None) -> str:
    if street:
        return f"{street}, {city}, {state}, Brazil"
    return f"{city}, {state}, Brazil"


def format_address(
    city: str, state: str, neighborhood: str | None = None, street: str | None = None
) -> str:
    parts = [p for p in (street, neighborhood) if p]
    parts.append(f"{city} - {state}")
    return ", ".join(parts)


class Geocoder:
    def __init__(
        self,
        provider: str | None = None,
        *,
        google_api_key: str | None = None,
        nominatim_url: str | None = None,
        session: requests.Session | None = None,
    ):
        self.provider = (provider or settings.GEOCODING_PROVIDER).lower()
        self.google_api_key = google_api_key or settings.GOOGLE_MAPS_API_KEY
        self.nominatim_url = (nominatim_url or settings.NOMINATIM_BASE_URL).rstrip("/")
        self.session = session or requests.Session()

    @property
    def uses_google(self) -> bool:
        return self.provider == "google" and bool(self.google_api_key)

    def _get(self, url: str, params: dict[str, Any]) -> Any:
        try:
            response = self.session.get(
                url,
                params=params,
                headers={"User-Agent": USER_AGENT},
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            return response.json()
        except (RequestException, ValueError) as exc:
            logger.warning("Geocoding request to %s failed: %s", url, exc)
            return None

    def geocode(self, city: str, state: str, street: str | None = None) -> Coordinates | None:
        query = build_query(city, state, street)
        if self.uses_google:
            data = self._get(GOOGLE_GEOCODE_URL, {"address": query, "key": self.google_api_key, "region": "br"})
            if not data or data.get("status") != "OK" or not data.get("results"):
                return None
            first = data["results"][0]
            location = first["geometry"]["location"]
            return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]),
                               display_name=first.get("formatted_address"))

        data = self._get(
            f"{self.nominatim_url}/search",
            {"q": query, "format": "json", "limit": 1, "countrycodes": "br"},
        )
        if not data:
            return None
        first = data[0]
        return Coordinates(lat=float(first["lat"]), lng=float(first["lon"]), display_name=first.get("display_name"))

    def reverse(self, lat: float, lng: float) -> ReverseGeocodeResult | None:
        if self.uses_google:
            data = self._get(GOOGLE_GEOCODE_URL, {"latlng": f"{lat},{lng}", "key": self.google_api_key})
            if not data or data.get("status") != "OK" or not data.get("results"):
                return None
            first = data["results"][0]
            components: dict[str, str] = {}
            for comp in first.get("address_components", []):
                for kind in comp.get("types", []):
                    components.setdefault(kind, comp.get("short_name") if kind == "administrative_area_level_1" else comp.get("long_name"))
            city = components.get("administrative_area_level_2") or components.get("locality") or ""
            return ReverseGeocodeResult(
                city=city,
                state=state_to_uf(components.get("administrative_area_level_1")),
                neighborhood=components.get("sublocality") or components.get("sublocality_level_1"),
                street=components.get("route"),
                display_name=first.get("formatted_address", ""),
                lat=lat,
                lng=lng,
            )

        data = self._get(
            f"{self.nominatim_url}/reverse",
            {"lat": lat, "lon": lng, "format": "json", "addressdetails": 1},
        )
        if not data or "address" not in data:
            return None
        address = data["address"]
        return ReverseGeocodeResult(
            city=address.get("city") or address.get("town") or address.get("municipality") or "",
            state=state_to_uf(address.get("state")),
            neighborhood=address.get("suburb") or address.get("neighbourhood"),
            street=address.get("road"),
            display_name=data.get("display_name", ""),
            lat=lat,
            lng=lng,
        )


_geocoder: Geocoder | None = None


def get_geocoder() -> Geocoder:
    global _geocoder
    if _geocoder is None:
        _geocoder = Geocoder()
    return _geocoder


def set_geocoder(geocoder: Geocoder | None) -> None:
    global _geocoder
    _geocoder = geocoder
