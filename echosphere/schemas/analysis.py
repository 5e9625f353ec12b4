"""Schemas for the AI endpoints.

Classifier output is untrusted: ``ClassificationResult`` repairs what it can
(enum membership, score ranges, missing strings) instead of trusting it.
"""

from __future__ import annotations

from typing import Any
from pydantic import BaseModel, Field, field_validator

from echosphere.schemas.feedback import Sentiment

_SENTIMENTS = ("positive", "negative", "neutral")


class AnalyzeRequest(BaseModel):
    text: str = ""
    image_base64: str | None = None  # data:image/...;base64,...
    category_hint: str | None = None
    language: str = "en-US"


class ClassificationResult(BaseModel):
    sentiment: Sentiment = "neutral"
    category: str = "General"
    summary: str = ""
    risk_score: int = 0
    eco_impact_score: int = 0
    eco_impact_reasoning: str = ""
    is_civic_issue: bool = True
    refusal_reason: str | None = None

    @field_validator("sentiment", mode="before")
    @classmethod
    def _repair_sentiment(cls, v: Any) -> str:
        v = str(v or "").strip().lower()
        return v if v in _SENTIMENTS else "neutral"

    @field_validator("risk_score", "eco_impact_score", mode="before")
    @classmethod
    def _clamp_score(cls, v: Any) -> int:
        try:
            score = int(round(float(v)))
        except (TypeError, ValueError, OverflowError):
            return 0
        return max(0, min(100, score))

    @field_validator("category", mode="before")
    @classmethod
    def _repair_category(cls, v: Any) -> str:
        v = str(v or "").strip()
        return v or "General"

    @field_validator("summary", "eco_impact_reasoning", mode="before")
    @classmethod
    def _repair_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("is_civic_issue", mode="before")
    @classmethod
    def _repair_flag(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() not in ("false", "no", "0")
        return True

    @field_validator("refusal_reason", mode="before")
    @classmethod
    def _repair_reason(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class DuplicateCandidate(BaseModel):
    id: str
    text: str


class DuplicateRequest(BaseModel):
    text: str
    candidates: list[DuplicateCandidate] = []


class DuplicateVerdict(BaseModel):
    is_duplicate: bool = False
    duplicate_id: str | None = None


class SurveyRequest(BaseModel):
    organization_name: str
    focus_area: str = ""


class SurveyQuestions(BaseModel):
    questions: list[str] = []


class TextResult(BaseModel):
    text: str


class CheckoutRequest(BaseModel):
    plan: str = Field(min_length=1)


class CheckoutRead(BaseModel):
    url: str | None = None
