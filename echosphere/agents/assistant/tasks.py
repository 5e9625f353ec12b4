"""Single prompt-and-parse AI tasks used around the submission flow and dashboard."""

from __future__ import annotations

import json
import logging

from echosphere.agents.assistant.prompts import (
    DUPLICATE_PROMPT, DRAFT_RESPONSE_PROMPT, EXECUTIVE_REPORT_PROMPT, SURVEY_PROMPT,
)
from echosphere.agents.classifier.tools import parse_json_response
from echosphere.agents.llm_provider import get_llm_provider
from echosphere.errors import ConfigurationError, ExternalServiceError
from echosphere.schemas import DuplicateCandidate, DuplicateVerdict

logger = logging.getLogger(__name__)


async def check_duplicates(text: str, candidates: list[DuplicateCandidate]) -> DuplicateVerdict:
    """Ask the LLM whether ``text`` duplicates a candidate.

    Optional enhancement: every failure, including a missing API key, is "no duplicate".
    """
    if not text or not candidates:
        return DuplicateVerdict()
    try:
        llm = get_llm_provider()
    except ConfigurationError:
        return DuplicateVerdict()

    prompt = DUPLICATE_PROMPT.format(
        text=text,
        candidates=json.dumps([c.model_dump() for c in candidates]),
    )
    try:
        data = parse_json_response(await llm.chat(prompt, max_tokens=256))
    except Exception:
        logger.warning("Duplicate check failed; treating as no duplicate", exc_info=True)
        return DuplicateVerdict()

    is_duplicate = data.get("is_duplicate", data.get("isDuplicate")) is True
    duplicate_id = data.get("duplicate_id", data.get("duplicateId"))
    known_ids = {c.id for c in candidates}
    if not is_duplicate or duplicate_id not in known_ids:
        return DuplicateVerdict()
    return DuplicateVerdict(is_duplicate=True, duplicate_id=duplicate_id)


async def _chat(prompt: str, max_tokens: int = 1024) -> str:
    llm = get_llm_provider()
    try:
        return await llm.chat(prompt, max_tokens=max_tokens)
    except Exception as e:
        logger.exception("AI call failed")
        raise ExternalServiceError("The AI service is unavailable. Please try again.") from e


async def draft_response(status: str, category: str, content: str, sentiment: str) -> str:
    text = await _chat(DRAFT_RESPONSE_PROMPT.format(
        status=status.replace("_", " "), category=category,
        content=content, sentiment=sentiment,
    ), max_tokens=400)
    return text or "Could not generate draft."


async def executive_report(lines: list[str]) -> str:
    if not lines:
        return "No feedback has been submitted yet."
    text = await _chat(EXECUTIVE_REPORT_PROMPT.format(context="\n".join(lines)), max_tokens=600)
    return text or "Report generation failed."


async def survey_questions(organization_name: str, focus_area: str) -> list[str]:
    raw = await _chat(SURVEY_PROMPT.format(
        organization_name=organization_name, focus_area=focus_area or "General",
    ), max_tokens=400)
    data = parse_json_response(raw)
    questions = data.get("questions")
    if not isinstance(questions, list):
        raise ExternalServiceError("Failed to generate questions.")
    return [str(q).strip() for q in questions if str(q).strip()][:5]
