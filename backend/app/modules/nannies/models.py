from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, JSONType, UTCDateTime, utcnow


class Nanny(Base):
    __tablename__ = "nannies"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True
    )

    # Personal data
    name: Mapped[str | None] = mapped_column(String(255), default=None)
    cpf: Mapped[str | None] = mapped_column(String(14), default=None)
    birth_date: Mapped[date | None] = mapped_column(Date, default=None)
    gender: Mapped[str | None] = mapped_column(String(30), default=None)
    phone: Mapped[str | None] = mapped_column(String(30), default=None)
    photo_url: Mapped[str | None] = mapped_column(String(500), default=None)
    about_me: Mapped[str | None] = mapped_column(Text, default=None)

    # Address
    cep: Mapped[str | None] = mapped_column(String(9), default=None)
    street: Mapped[str | None] = mapped_column(String(255), default=None)
    neighborhood: Mapped[str | None] = mapped_column(String(150), default=None)
    city: Mapped[str | None] = mapped_column(String(150), default=None)
    state: Mapped[str | None] = mapped_column(String(2), default=None)
    latitude: Mapped[float | None] = mapped_column(Float, default=None)
    longitude: Mapped[float | None] = mapped_column(Float, default=None)

    # Experience
    experience_years: Mapped[int | None] = mapped_column(Integer, default=None)
    age_ranges_experience: Mapped[list] = mapped_column(JSONType, default=list)
    strengths: Mapped[list] = mapped_column(JSONType, default=list)
    accepted_activities: Mapped[list] = mapped_column(JSONType, default=list)
    nanny_types: Mapped[list] = mapped_column(JSONType, default=list)
    contract_regimes: Mapped[list] = mapped_column(JSONType, default=list)
    certifications: Mapped[list] = mapped_column(JSONType, default=list)
    hourly_rate_range: Mapped[str | None] = mapped_column(String(30), default=None)
    max_children_care: Mapped[int | None] = mapped_column(Integer, default=None)
    max_travel_distance: Mapped[str | None] = mapped_column(String(30), default=None)
    comfortable_with_pets: Mapped[str | None] = mapped_column(String(20), default=None)
    is_smoker: Mapped[bool | None] = mapped_column(Boolean, default=None)
    has_cnh: Mapped[bool | None] = mapped_column(Boolean, default=None)
    has_special_needs_experience: Mapped[bool | None] = mapped_column(Boolean, default=None)
    special_needs_specialties: Mapped[list] = mapped_column(JSONType, default=list)
    availability_slots: Mapped[list] = mapped_column(JSONType, default=list)

    # Validation
    document_validated: Mapped[bool] = mapped_column(Boolean, default=False)
    document_expiration_date: Mapped[date | None] = mapped_column(Date, default=None)
    personal_data_validated: Mapped[bool] = mapped_column(Boolean, default=False)
    criminal_background_validated: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)
