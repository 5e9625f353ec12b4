from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field
from echosphere.schemas.organization import Location

Sentiment = Literal["positive", "negative", "neutral"]
FeedbackStatus = Literal["received", "triaged", "in_progress", "resolved"]
Attachment = Literal["image", "video", "audio"]


class AdminNote(BaseModel):
    text: str
    author: str = ""
    created_at: str = ""


class FeedbackCreate(BaseModel):
    id: str | None = None
    user_id: str | None = None
    location: Location
    content: str = ""
    timestamp: datetime | None = None
    sentiment: Sentiment = "neutral"
    category: str = "General"
    summary: str | None = None
    risk_score: int = Field(default=0, ge=0, le=100)
    eco_impact_score: int = Field(default=0, ge=0, le=100)
    eco_impact_reasoning: str = ""
    author_name: str | None = None
    contact_email: str | None = None
    attachments: list[Attachment] = []
    image_url: str | None = None


class FeedbackRead(BaseModel):
    id: str
    organization_id: str | None = None
    user_id: str | None = None
    location: Location
    content: str
    timestamp: datetime
    sentiment: Sentiment
    category: str
    summary: str | None = None
    risk_score: int = 0
    eco_impact_score: int = 0
    eco_impact_reasoning: str = ""
    status: FeedbackStatus = "received"
    author_name: str | None = None
    contact_email: str | None = None
    attachments: list[Attachment] = []
    image_url: str | None = None
    votes: int = 0
    admin_notes: list[AdminNote] = []

    model_config = {"from_attributes": True}


class StatusUpdate(BaseModel):
    status: FeedbackStatus


class NoteCreate(BaseModel):
    text: str = Field(min_length=1, max_length=2000)


class ResponseEmail(BaseModel):
    subject: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1)
