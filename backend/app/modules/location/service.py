from __future__ import annotations

import logging
from typing import Any

from .geocoding import Geocoder, get_geocoder
from .viacep import ViaCepClient


logger = logging.getLogger(__name__)


def fill_address_coordinates(
    profile: Any, *, geocoder: Geocoder | None = None, viacep: ViaCepClient | None = None
) -> bool:
    """Complete the address and coordinates of a family or nanny profile from its CEP.

    Returns True when coordinates were set. Lookup failures are logged and
    leave the profile untouched.
    """
    if not profile.cep or (profile.latitude is not None and profile.longitude is not None):
        return False

    if not profile.city or not profile.state:
        try:
            address = (viacep or ViaCepClient()).lookup(profile.cep)
        except ValueError:
            logger.info("Skipping geocoding for invalid CEP %r", profile.cep)
            return False
        if address is None:
            logger.info("CEP %s not found; address left as provided", profile.cep)
            return False
        profile.city = profile.city or address.city
        profile.state = profile.state or address.state
        profile.neighborhood = profile.neighborhood or address.neighborhood
        profile.street = profile.street or address.street

    coords = (geocoder or get_geocoder()).geocode(profile.city, profile.state, profile.street)
    if coords is None:
        logger.warning("Could not geocode CEP %s (%s/%s)", profile.cep, profile.city, profile.state)
        return False
    profile.latitude = coords.lat
    profile.longitude = coords.lng
    return True
