"""AI endpoints: classification, duplicate detection, executive report, survey questions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.agents.assistant.tasks import check_duplicates, executive_report, survey_questions
from echosphere.agents.classifier.graph import run_classification
from echosphere.db import crud
from echosphere.db.engine import get_db
from echosphere.dependencies import require_org_staff
from echosphere.errors import ConfigurationError, ExternalServiceError
from echosphere.schemas import (
    AnalyzeRequest, ClassificationResult, DuplicateRequest, DuplicateVerdict,
    SurveyRequest, SurveyQuestions, TextResult,
)
from echosphere.services.auth import AuthContext
from echosphere.services.report_generator import report_lines

router = APIRouter(tags=["analysis"])


@router.post("/api/analyze", response_model=ClassificationResult)
async def analyze(body: AnalyzeRequest):
    """Classify a report draft (text and/or image)."""
    if not body.text.strip() and not body.image_base64:
        raise HTTPException(422, "Nothing to analyze")
    try:
        return await run_classification(body)
    except ConfigurationError as e:
        raise HTTPException(503, e.message)
    except ExternalServiceError as e:
        raise HTTPException(502, e.message)


@router.post("/api/analyze/duplicates", response_model=DuplicateVerdict)
async def analyze_duplicates(body: DuplicateRequest):
    """Advisory only; never fails the caller."""
    return await check_duplicates(body.text, body.candidates)


@router.post("/api/survey-questions", response_model=SurveyQuestions)
async def generate_survey_questions(body: SurveyRequest):
    try:
        questions = await survey_questions(body.organization_name, body.focus_area)
    except ConfigurationError as e:
        raise HTTPException(503, e.message)
    except ExternalServiceError as e:
        raise HTTPException(502, e.message)
    return SurveyQuestions(questions=questions)


@router.post("/api/organizations/{org_id}/report", response_model=TextResult)
async def generate_executive_report(
    org_id: str,
    auth: AuthContext = Depends(require_org_staff),
    db: AsyncSession = Depends(get_db),
):
    """Executive summary of the organization's reports for staff."""
    items = await crud.list_all_feedback(db, org_id)
    try:
        text = await executive_report(report_lines(items[:200]))
    except ConfigurationError as e:
        raise HTTPException(503, e.message)
    except ExternalServiceError as e:
        raise HTTPException(502, e.message)
    return TextResult(text=text)
