"""LangGraph TypedDict state for the classification agent."""

from __future__ import annotations

from typing import TypedDict, Any


class ClassificationState(TypedDict):
    text: str
    image: bytes | None
    mime_type: str
    category_hint: str
    language: str
    raw_response: str
    result: dict[str, Any]
    verdict: str  # "" | accepted | refused
