from __future__ import annotations

import pytest

from app.core.errors import SubscriptionRequiredError
from app.modules.favorites.service import FavoritesService
from factories import make_family, make_nanny, user_headers


def test_add_is_idempotent_and_listed(db) -> None:
    family = make_family(db)
    nanny = make_nanny(db, name="Joana Ferreira", city="Campinas", state="SP")
    svc = FavoritesService(db)

    first = svc.add(family, nanny.id)
    again = svc.add(family, nanny.id)

    assert again.id == first.id
    [entry] = svc.list(family)
    assert entry["nanny_id"] == nanny.id
    assert entry["nanny"]["name"] == "Joana"
    assert entry["nanny"]["city"] == "Campinas"


def test_family_without_subscription_cannot_favorite(db) -> None:
    family = make_family(db, plan=None)
    nanny = make_nanny(db)

    with pytest.raises(SubscriptionRequiredError) as exc:
        FavoritesService(db).add(family, nanny.id)
    assert exc.value.code == "SUBSCRIPTION_REQUIRED"


def test_unknown_nanny_and_missing_favorite(db) -> None:
    family = make_family(db)
    svc = FavoritesService(db)

    with pytest.raises(LookupError, match="Babá não encontrada"):
        svc.add(family, "missing")
    with pytest.raises(LookupError, match="Favorito não encontrado"):
        svc.remove(family, "missing")


def test_favorites_over_http(client, db) -> None:
    family = make_family(db)
    nanny = make_nanny(db)
    headers = user_headers(family.user_id)

    added = client.post("/favorites", json={"nanny_id": nanny.id}, headers=headers)
    assert added.status_code == 200, added.text
    assert added.json()["nanny_id"] == nanny.id

    listed = client.get("/favorites", headers=headers)
    assert [item["nanny"]["id"] for item in listed.json()] == [nanny.id]

    assert client.delete(f"/favorites/{nanny.id}", headers=headers).status_code == 204
    assert client.get("/favorites", headers=headers).json() == []
    assert client.delete(f"/favorites/{nanny.id}", headers=headers).status_code == 404

    nanny_headers = user_headers(nanny.user_id)
    assert client.get("/favorites", headers=nanny_headers).status_code == 403
