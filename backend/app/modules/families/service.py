from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.modules.audit.constants import AuditTable
from app.modules.audit.service import AuditService
from app.modules.location.service import fill_address_coordinates
from .models import Child, Family
from .repository import FamiliesRepository
from .schemas import ChildCreate, ChildUpdate, FamilyUpdate


logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("cep", "street", "number", "neighborhood", "city", "state")


class FamiliesService:
    def __init__(self, db: Session, audit: AuditService | None = None):
        self.db = db
        self.repo = FamiliesRepository(db)
        self.audit = audit

    def update_profile(self, family: Family, data: FamilyUpdate) -> Family:
        changes = data.model_dump(exclude_unset=True)
        if any(k in changes and changes[k] != getattr(family, k) for k in ADDRESS_FIELDS):
            family.latitude = None
            family.longitude = None
        for key, value in changes.items():
            setattr(family, key, value)
        fill_address_coordinates(family)
        return self.repo.save(family)

    def add_child(self, family: Family, data: ChildCreate) -> Child:
        child = Child(family_id=family.id, **data.model_dump())
        self.repo.save(child)
        self._sync_children_count(family)
        return child

    def update_child(self, family: Family, child_id: str, data: ChildUpdate) -> Child:
        child = self.repo.get_child(family.id, child_id)
        if child is None:
            raise LookupError("Criança não encontrada")
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(child, key, value)
        return self.repo.save(child)

    def delete_child(self, family: Family, child_id: str) -> None:
        child = self.repo.get_child(family.id, child_id)
        if child is None:
            raise LookupError("Criança não encontrada")
        self.repo.delete_child(child)
        self._sync_children_count(family)

    def _sync_children_count(self, family: Family) -> None:
        self.db.refresh(family)
        family.number_of_children = len(family.children)
        self.repo.save(family)

    # ---- Admin ----
    def admin_detail(self, family_id: str, viewer_email: str) -> Family:
        family = self.repo.get_with_children(family_id)
        if family is None:
            raise LookupError("Família não encontrada")
        if self.audit:
            self.audit.log_personal_data_view(AuditTable.FAMILIES, family.id, viewer_email, "family_profile")
        return family
