from __future__ import annotations

from pydantic import BaseModel


class PropertyRef(BaseModel):
    id: str
    name: str
    price: float = 0.0
    google_calendar_id: str | None = None


class CustomerRef(BaseModel):
    id: str
    name: str
    email: str | None = None
