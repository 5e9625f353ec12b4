from __future__ import annotations
from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8)
    display_name: str = ""


class LoginRequest(BaseModel):
    email: str
    password: str


class Identity(BaseModel):
    id: str
    email: str
    display_name: str = ""
    role: str = "citizen"
    organization_id: str | None = None
