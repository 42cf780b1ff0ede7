from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, JSONType, UTCDateTime, utcnow


class Family(Base):
    __tablename__ = "families"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True
    )
    name: Mapped[str | None] = mapped_column(String(255), default=None)
    phone: Mapped[str | None] = mapped_column(String(30), default=None)
    cpf: Mapped[str | None] = mapped_column(String(14), default=None)

    # Address
    cep: Mapped[str | None] = mapped_column(String(9), default=None)
    street: Mapped[str | None] = mapped_column(String(255), default=None)
    number: Mapped[str | None] = mapped_column(String(20), default=None)
    neighborhood: Mapped[str | None] = mapped_column(String(150), default=None)
    city: Mapped[str | None] = mapped_column(String(150), default=None)
    state: Mapped[str | None] = mapped_column(String(2), default=None)
    latitude: Mapped[float | None] = mapped_column(Float, default=None)
    longitude: Mapped[float | None] = mapped_column(Float, default=None)

    # Care preferences
    has_pets: Mapped[bool] = mapped_column(Boolean, default=False)
    number_of_children: Mapped[int | None] = mapped_column(Integer, default=None)
    nanny_type: Mapped[str | None] = mapped_column(String(30), default=None)
    contract_regime: Mapped[str | None] = mapped_column(String(30), default=None)
    hourly_rate_range: Mapped[str | None] = mapped_column(String(30), default=None)
    domestic_help_expected: Mapped[list] = mapped_column(JSONType, default=list)
    availability_slots: Mapped[list] = mapped_column(JSONType, default=list)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    children: Mapped[list["Child"]] = relationship(
        "Child",
        back_populates="family",
        cascade="all, delete-orphan",
        order_by="Child.created_at",
    )


class Child(Base):
    __tablename__ = "children"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    family_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("families.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str | None] = mapped_column(String(150), default=None)
    birth_date: Mapped[date | None] = mapped_column(Date, default=None)
    expected_birth_date: Mapped[date | None] = mapped_column(Date, default=None)
    unborn: Mapped[bool] = mapped_column(Boolean, default=False)
    has_special_needs: Mapped[bool] = mapped_column(Boolean, default=False)
    special_needs_types: Mapped[list] = mapped_column(JSONType, default=list)
    special_needs_description: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    family: Mapped["Family"] = relationship("Family", back_populates="children")
