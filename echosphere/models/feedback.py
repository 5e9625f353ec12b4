"""Feedback report model: a resident's geolocated, AI-classified ticket."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from echosphere.models.base import Base, ULIDMixin
from echosphere.models.encrypted_type import EncryptedString

FEEDBACK_STATUSES = ("received", "triaged", "in_progress", "resolved")


class Feedback(Base, ULIDMixin):
    __tablename__ = "feedback"

    organization_id: Mapped[str] = mapped_column(String(26), ForeignKey("organizations.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(String(26), nullable=True, default=None, index=True)
    location: Mapped[dict[str, Any]] = mapped_column(JSON)  # {x: lng, y: lat}
    content: Mapped[str] = mapped_column(Text, default="")
    # Client-side creation time; created_at is the server receipt time
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    sentiment: Mapped[str] = mapped_column(String(10), default="neutral")
    category: Mapped[str] = mapped_column(String(100), default="General")
    summary: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)
    risk_score: Mapped[int] = mapped_column(Integer, default=0)
    eco_impact_score: Mapped[int] = mapped_column(Integer, default=0)
    eco_impact_reasoning: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(20), default="received")  # received | triaged | in_progress | resolved
    author_name: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)
    contact_email: Mapped[str | None] = mapped_column(EncryptedString(500), nullable=True, default=None)
    attachments: Mapped[list[str]] = mapped_column(JSON, default=list)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    votes: Mapped[int] = mapped_column(Integer, default=0)
    admin_notes: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    organization = relationship("Organization", back_populates="feedback")
