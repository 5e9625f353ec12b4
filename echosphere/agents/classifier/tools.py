"""Classification agent tools: parse and repair untrusted LLM output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from echosphere.errors import ExternalServiceError
from echosphere.schemas import ClassificationResult

logger = logging.getLogger(__name__)

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def parse_json_response(response: str) -> dict[str, Any]:
    """Extract the JSON object from an LLM reply (tolerates ``` fences)."""
    text = (response or "").strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, IndexError) as e:
        logger.error("Unparseable classifier response: %s", response[:200] if response else "")
        raise ExternalServiceError("The AI service returned an unreadable response.") from e
    if not isinstance(data, dict):
        raise ExternalServiceError("The AI service returned an unexpected response.")
    return data


def snake_keys(data: dict[str, Any]) -> dict[str, Any]:
    """riskScore -> risk_score, so either casing from the model is accepted."""
    return {_CAMEL.sub("_", k).lower(): v for k, v in data.items()}


def to_classification(data: dict[str, Any]) -> ClassificationResult:
    """Validate a raw payload against the classification schema, repairing bad fields."""
    return ClassificationResult.model_validate(snake_keys(data))
