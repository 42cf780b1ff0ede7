from __future__ import annotations

from types import SimpleNamespace

import pytest
import requests

from app.modules.location.geocoding import Coordinates, Geocoder, format_address, state_to_uf
from app.modules.location.service import fill_address_coordinates
from app.modules.location.viacep import ViaCepClient, clean_cep

from test_payments import FakeResponse


class GetSession:
    def __init__(self, responses: list) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, dict]] = []

    def get(self, url: str, **kwargs):
        self.calls.append((url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


VIACEP_PAULISTA = {
    "cep": "01310-100",
    "logradouro": "Avenida Paulista",
    "bairro": "Bela Vista",
    "localidade": "São Paulo",
    "uf": "SP",
}


def _profile(**fields):
    data = dict(cep="01310-100", city=None, state=None, neighborhood=None, street=None,
                latitude=None, longitude=None)
    data.update(fields)
    return SimpleNamespace(**data)


def test_clean_cep() -> None:
    assert clean_cep("01310-100") == "01310100"
    with pytest.raises(ValueError, match="CEP inválido"):
        clean_cep("1234")


def test_viacep_lookup() -> None:
    session = GetSession([FakeResponse(payload=VIACEP_PAULISTA)])
    address = ViaCepClient(base_url="https://viacep.test/ws", session=session).lookup("01310100")

    assert address.city == "São Paulo"
    assert address.street == "Avenida Paulista"
    assert session.calls[0][0] == "https://viacep.test/ws/01310100/json/"


def test_viacep_unknown_or_unreachable() -> None:
    session = GetSession([FakeResponse(payload={"erro": True}), requests.ConnectionError("offline")])
    client = ViaCepClient(session=session)
    assert client.lookup("99999-999") is None
    assert client.lookup("99999-999") is None


def test_nominatim_geocode() -> None:
    session = GetSession([FakeResponse(payload=[{"lat": "-23.56", "lon": "-46.65", "display_name": "Paulista"}])])
    coords = Geocoder("nominatim", nominatim_url="https://osm.test/", session=session).geocode("São Paulo", "SP")

    assert coords == Coordinates(lat=-23.56, lng=-46.65, display_name="Paulista")
    url, kwargs = session.calls[0]
    assert url == "https://osm.test/search"
    assert kwargs["params"]["q"] == "São Paulo, SP, Brazil"
    assert kwargs["params"]["countrycodes"] == "br"


def test_geocode_failures_return_none() -> None:
    session = GetSession([FakeResponse(payload=[]), FakeResponse(status_code=503)])
    geocoder = Geocoder("nominatim", session=session)
    assert geocoder.geocode("Nenhures", "SP") is None
    assert geocoder.geocode("Nenhures", "SP") is None


def test_nominatim_reverse() -> None:
    payload = {
        "display_name": "Rua Augusta, Consolação, São Paulo",
        "address": {"town": "São Paulo", "state": "São Paulo", "suburb": "Consolação", "road": "Rua Augusta"},
    }
    result = Geocoder("nominatim", session=GetSession([FakeResponse(payload=payload)])).reverse(-23.55, -46.65)

    assert result.city == "São Paulo"
    assert result.state == "SP"
    assert result.neighborhood == "Consolação"


def test_google_is_used_only_with_a_key() -> None:
    assert not Geocoder("nominatim", google_api_key="key").uses_google
    payload = {
        "status": "OK",
        "results": [{"formatted_address": "Campinas - SP", "geometry": {"location": {"lat": -22.9, "lng": -47.06}}}],
    }
    session = GetSession([FakeResponse(payload=payload)])
    coords = Geocoder("google", google_api_key="key", session=session).geocode("Campinas", "SP")
    assert (coords.lat, coords.lng) == (-22.9, -47.06)
    assert session.calls[0][1]["params"]["region"] == "br"


def test_state_and_address_helpers() -> None:
    assert state_to_uf("Espírito Santo") == "ES"
    assert state_to_uf("rj") == "RJ"
    assert state_to_uf(None) == ""
    assert format_address("Campinas", "SP", "Cambuí", "Rua A") == "Rua A, Cambuí, Campinas - SP"


def test_fill_address_coordinates_from_cep() -> None:
    viacep = ViaCepClient(session=GetSession([FakeResponse(payload=VIACEP_PAULISTA)]))
    geocoder = Geocoder("nominatim", session=GetSession([FakeResponse(payload=[{"lat": "-23.56", "lon": "-46.65"}])]))
    profile = _profile()

    assert fill_address_coordinates(profile, geocoder=geocoder, viacep=viacep)
    assert (profile.city, profile.state, profile.neighborhood) == ("São Paulo", "SP", "Bela Vista")
    assert (profile.latitude, profile.longitude) == (-23.56, -46.65)


def test_fill_address_coordinates_skips() -> None:
    assert not fill_address_coordinates(_profile(cep=None))
    assert not fill_address_coordinates(_profile(latitude=1.0, longitude=2.0))
    assert not fill_address_coordinates(_profile(cep="123"))

    viacep = ViaCepClient(session=GetSession([FakeResponse(payload={"erro": True})]))
    profile = _profile()
    assert not fill_address_coordinates(profile, viacep=viacep)
    assert profile.latitude is None
