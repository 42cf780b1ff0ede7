from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import SubscriptionRequiredError
from app.modules.families.models import Family
from app.modules.nannies.models import Nanny
from app.modules.notifications.templates import first_name
from app.modules.subscriptions.service import SubscriptionService
from .models import Favorite
from .repository import FavoritesRepository


logger = logging.getLogger(__name__)


def favorite_card(favorite: Favorite) -> dict[str, Any]:
    """List entry for a saved nanny. Only the first name is exposed."""
    nanny = favorite.nanny
    return {
        "id": favorite.id,
        "nanny_id": favorite.nanny_id,
        "created_at": favorite.created_at,
        "nanny": {
            "id": nanny.id,
            "name": first_name(nanny.name),
            "photo_url": nanny.photo_url,
            "experience_years": nanny.experience_years,
            "hourly_rate_range": nanny.hourly_rate_range,
            "city": nanny.city,
            "state": nanny.state,
        },
    }


class FavoritesService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = FavoritesRepository(db)
        self.subscriptions = SubscriptionService(db)

    def list(self, family: Family) -> list[dict[str, Any]]:
        return [favorite_card(fav) for fav in self.repo.list_for_family(family.id)]

    def add(self, family: Family, nanny_id: str) -> Favorite:
        """Save a nanny for the family; saving twice returns the existing entry."""
        if not self.subscriptions.can_favorite(family_id=family.id):
            raise SubscriptionRequiredError("Assine um plano para favoritar babás", code="SUBSCRIPTION_REQUIRED")
        if self.db.get(Nanny, nanny_id) is None:
            raise LookupError("Babá não encontrada")

        existing = self.repo.get(family.id, nanny_id)
        if existing is not None:
            return existing
        favorite = self.repo.add(Favorite(family_id=family.id, nanny_id=nanny_id))
        logger.info("Family %s saved nanny %s", family.id, nanny_id)
        return favorite

    def remove(self, family: Family, nanny_id: str) -> None:
        favorite = self.repo.get(family.id, nanny_id)
        if favorite is None:
            raise LookupError("Favorito não encontrado")
        self.repo.delete(favorite)
