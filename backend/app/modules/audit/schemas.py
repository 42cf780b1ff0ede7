from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuditLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_user_id: str | None = None
    action: str
    table_name: str
    record_id: str | None = None
    data: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class AuditLogFilters(BaseModel):
    action: str | None = None
    table: str | None = None
    admin_user_id: str | None = None
    record_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=25, ge=1, le=200)


class AuditLogPage(BaseModel):
    items: list[AuditLogRead]
    total: int
    page: int
    limit: int
    total_pages: int
