"""Organization (tenant) model: one row per municipal workspace."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from echosphere.models.base import Base, ULIDMixin


class Organization(Base, ULIDMixin):
    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    center: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)  # {x: lng, y: lat}
    focus_area: Mapped[str] = mapped_column(String(100), default="")
    questions: Mapped[list[str]] = mapped_column(JSON, default=list)

    feedback = relationship("Feedback", back_populates="organization", lazy="noload")
