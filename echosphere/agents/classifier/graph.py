"""Classification Agent: LangGraph StateGraph implementation.

Graph: classify → validate → (finalize | refuse)
The LLM output is treated as untrusted and repaired in ``validate``.
"""

from __future__ import annotations

import logging
from typing import Literal

from langgraph.graph import StateGraph, END

from echosphere.agents.state import ClassificationState
from echosphere.agents.classifier.prompts import CLASSIFY_PROMPT, IMAGE_ONLY_TEXT, DEFAULT_REFUSAL
from echosphere.agents.classifier.tools import parse_json_response, to_classification
from echosphere.errors import EchoSphereError, ExternalServiceError
from echosphere.schemas import AnalyzeRequest, ClassificationResult
from echosphere.services.image_store import decode_data_uri

logger = logging.getLogger(__name__)


# ── Node functions ────────────────────────────────────────

async def classify_node(state: ClassificationState) -> dict:
    """Call the LLM with the sanitized text (and image, when attached)."""
    from echosphere.agents.llm_provider import get_llm_provider
    llm = get_llm_provider()  # ConfigurationError propagates to the caller

    prompt = CLASSIFY_PROMPT.format(
        language=state["language"],
        category_hint=state["category_hint"] or "Unspecified",
        text=state["text"] or IMAGE_ONLY_TEXT,
    )
    try:
        if state["image"]:
            response = await llm.analyze_image(state["image"], state["mime_type"], prompt)
        else:
            response = await llm.chat(prompt)
    except EchoSphereError:
        raise
    except Exception as e:
        logger.exception("Classification call failed")
        raise ExternalServiceError("The AI service is unavailable. Please try again.") from e

    if not response:
        raise ExternalServiceError("Empty response from AI service.")
    return {"raw_response": response}


def validate_node(state: ClassificationState) -> dict:
    """Parse and repair the raw response against the classification schema."""
    result = to_classification(parse_json_response(state["raw_response"]))
    return {"result": result.model_dump()}


def route_verdict(state: ClassificationState) -> Literal["refuse", "finalize"]:
    """Conditional edge: refuse content that is not a civic issue."""
    if not state["result"].get("is_civic_issue", True):
        return "refuse"
    return "finalize"


def refuse_node(state: ClassificationState) -> dict:
    result = {**state["result"]}
    result["refusal_reason"] = result.get("refusal_reason") or DEFAULT_REFUSAL
    return {"result": result, "verdict": "refused"}


def finalize_node(state: ClassificationState) -> dict:
    result = {**state["result"], "refusal_reason": None}
    return {"result": result, "verdict": "accepted"}


# ── Build graph ───────────────────────────────────────────

def build_classifier_graph():
    graph = StateGraph(ClassificationState)

    graph.add_node("classify", classify_node)
    graph.add_node("validate", validate_node)
    graph.add_node("refuse", refuse_node)
    graph.add_node("finalize", finalize_node)

    graph.set_entry_point("classify")
    graph.add_edge("classify", "validate")
    graph.add_conditional_edges("validate", route_verdict, {
        "refuse": "refuse",
        "finalize": "finalize",
    })
    graph.add_edge("refuse", END)
    graph.add_edge("finalize", END)

    return graph.compile()


_graph = None


def _get_graph():
    global _graph
    if _graph is None:
        _graph = build_classifier_graph()
    return _graph


# ── Public API ────────────────────────────────────────────

async def run_classification(request: AnalyzeRequest) -> ClassificationResult:
    """Classify one report draft. Raises ConfigurationError / ExternalServiceError."""
    image, mime_type = None, "image/jpeg"
    if request.image_base64:
        try:
            image, mime_type = decode_data_uri(request.image_base64)
        except ValueError:
            logger.warning("Ignoring malformed image attachment")

    initial_state: ClassificationState = {
        "text": request.text,
        "image": image,
        "mime_type": mime_type,
        "category_hint": request.category_hint or "",
        "language": request.language,
        "raw_response": "",
        "result": {},
        "verdict": "",
    }

    result = await _get_graph().ainvoke(initial_state)
    return ClassificationResult.model_validate(result["result"])
