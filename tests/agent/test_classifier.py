"""Tests for the classification agent and the assistant tasks."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from echosphere.agents.classifier.graph import build_classifier_graph, run_classification, route_verdict
from echosphere.agents.classifier.tools import parse_json_response, snake_keys
from echosphere.agents.assistant import tasks
from echosphere.errors import ConfigurationError, ExternalServiceError
from echosphere.schemas import AnalyzeRequest, DuplicateCandidate


def fake_llm(response: str):
    llm = MagicMock()
    llm.chat = AsyncMock(return_value=response)
    llm.analyze_image = AsyncMock(return_value=response)
    return llm


def patched_provider(llm):
    return patch("echosphere.agents.llm_provider.get_llm_provider", return_value=llm)


# ── tools ────────────────────────────────────────────────────────────

def test_parse_json_response_strips_fences():
    assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_response('{"a": 2}') == {"a": 2}


def test_parse_json_response_rejects_garbage():
    with pytest.raises(ExternalServiceError):
        parse_json_response("I cannot help with that")
    with pytest.raises(ExternalServiceError):
        parse_json_response("[1, 2]")


def test_snake_keys():
    assert snake_keys({"riskScore": 1, "isCivicIssue": True, "summary": "x"}) == {
        "risk_score": 1, "is_civic_issue": True, "summary": "x",
    }


def test_route_verdict():
    assert route_verdict({"result": {"is_civic_issue": False}}) == "refuse"
    assert route_verdict({"result": {"is_civic_issue": True}}) == "finalize"


def test_build_classifier_graph_returns_callable():
    graph = build_classifier_graph()
    assert hasattr(graph, "ainvoke")


# ── graph runs ───────────────────────────────────────────────────────

async def test_classification_repairs_untrusted_output():
    llm = fake_llm(json.dumps({
        "sentiment": "furious", "category": "Roads", "summary": "Pothole",
        "riskScore": 140, "ecoImpactScore": "35", "isCivicIssue": True,
    }))
    with patched_provider(llm):
        result = await run_classification(AnalyzeRequest(text="Huge pothole", category_hint="Roads"))

    assert result.sentiment == "neutral"
    assert result.risk_score == 100
    assert result.eco_impact_score == 35
    assert result.is_civic_issue is True
    assert result.refusal_reason is None
    llm.chat.assert_awaited_once()
    assert "Huge pothole" in llm.chat.call_args.args[0]


async def test_classification_repairs_overflowing_scores():
    llm = fake_llm('{"sentiment": "negative", "category": "Roads", "riskScore": 1e999, "ecoImpactScore": -1e999}')
    with patched_provider(llm):
        result = await run_classification(AnalyzeRequest(text="Sinkhole", category_hint="Roads"))

    assert result.risk_score == 0
    assert result.eco_impact_score == 0
    assert result.category == "Roads"


async def test_refusal_keeps_reason():
    llm = fake_llm(json.dumps({"is_civic_issue": False, "refusal_reason": "Not a city matter."}))
    with patched_provider(llm):
        result = await run_classification(AnalyzeRequest(text="My neighbour is rude"))
    assert result.is_civic_issue is False
    assert result.refusal_reason == "Not a city matter."


async def test_refusal_without_reason_gets_default():
    llm = fake_llm(json.dumps({"is_civic_issue": "false"}))
    with patched_provider(llm):
        result = await run_classification(AnalyzeRequest(text="hello"))
    assert result.refusal_reason == "This platform is for city services and maintenance issues only."


async def test_image_goes_through_vision_call():
    llm = fake_llm('{"sentiment": "negative", "category": "Sanitation"}')
    with patched_provider(llm):
        await run_classification(AnalyzeRequest(
            text="", image_base64="data:image/png;base64,aGVsbG8=",
        ))
    llm.analyze_image.assert_awaited_once()
    image, mime_type, prompt = llm.analyze_image.call_args.args
    assert image == b"hello"
    assert mime_type == "image/png"
    assert "Analyze this image for urban planning issues." in prompt


async def test_missing_credentials_raise_configuration_error():
    with patch("echosphere.agents.llm_provider.get_llm_provider",
               side_effect=ConfigurationError("AI classification is not configured.")):
        with pytest.raises(ConfigurationError):
            await run_classification(AnalyzeRequest(text="Broken light"))


async def test_provider_failure_is_external_error():
    llm = MagicMock()
    llm.chat = AsyncMock(side_effect=RuntimeError("timeout"))
    with patched_provider(llm):
        with pytest.raises(ExternalServiceError):
            await run_classification(AnalyzeRequest(text="Broken light"))


async def test_unparseable_response_is_external_error():
    with patched_provider(fake_llm("not json at all")):
        with pytest.raises(ExternalServiceError):
            await run_classification(AnalyzeRequest(text="Broken light"))


# ── assistant tasks ──────────────────────────────────────────────────

CANDIDATES = [DuplicateCandidate(id="a", text="Pothole"), DuplicateCandidate(id="b", text="Light out")]


async def test_check_duplicates_match():
    llm = fake_llm('{"isDuplicate": true, "duplicateId": "b"}')
    with patch.object(tasks, "get_llm_provider", return_value=llm):
        verdict = await tasks.check_duplicates("Street light broken", CANDIDATES)
    assert verdict.is_duplicate is True
    assert verdict.duplicate_id == "b"


async def test_check_duplicates_ignores_unknown_ids():
    llm = fake_llm('{"is_duplicate": true, "duplicate_id": "zzz"}')
    with patch.object(tasks, "get_llm_provider", return_value=llm):
        verdict = await tasks.check_duplicates("Street light broken", CANDIDATES)
    assert verdict.is_duplicate is False
    assert verdict.duplicate_id is None


async def test_check_duplicates_unconfigured_is_no_duplicate():
    with patch.object(tasks, "get_llm_provider", side_effect=ConfigurationError("no key")):
        verdict = await tasks.check_duplicates("Street light broken", CANDIDATES)
    assert verdict.is_duplicate is False


async def test_check_duplicates_failure_is_no_duplicate():
    llm = MagicMock()
    llm.chat = AsyncMock(side_effect=RuntimeError("down"))
    with patch.object(tasks, "get_llm_provider", return_value=llm):
        verdict = await tasks.check_duplicates("Street light broken", CANDIDATES)
    assert verdict.is_duplicate is False


async def test_survey_questions_capped_at_five():
    llm = fake_llm(json.dumps({"questions": [f"Q{i}?" for i in range(8)]}))
    with patch.object(tasks, "get_llm_provider", return_value=llm):
        questions = await tasks.survey_questions("Springfield", "Parks")
    assert questions == ["Q0?", "Q1?", "Q2?", "Q3?", "Q4?"]


async def test_executive_report_without_reports_skips_llm():
    with patch.object(tasks, "get_llm_provider") as provider:
        text = await tasks.executive_report([])
    provider.assert_not_called()
    assert text == "No feedback has been submitted yet."
