from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field


class Location(BaseModel):
    x: float  # longitude
    y: float  # latitude


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    region_code: str = Field(min_length=1, max_length=32)
    focus_area: str = "Urban Development"
    center: Location
    questions: list[str] = []


class OrganizationRead(BaseModel):
    id: str
    name: str
    slug: str
    center: Location
    focus_area: str = ""
    questions: list[str] = []
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
