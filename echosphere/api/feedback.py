"""Feedback reports: public listing/creation, staff triage, resident replies."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.db import crud
from echosphere.db.engine import get_db
from echosphere.dependencies import require_auth, optional_auth, ensure_staff, require_org_staff
from echosphere.errors import ConfigurationError, ExternalServiceError
from echosphere.models import Feedback
from echosphere.schemas import (
    FeedbackCreate, FeedbackRead, StatusUpdate, NoteCreate, ResponseEmail, TextResult, WSMessage,
)
from echosphere.services.auth import AuthContext
from echosphere.services.provisioning import get_writable_organization
from echosphere.services.report_generator import export_csv, csv_filename, generate_html_report
from echosphere.services.sanitizer import sanitize_text, sanitize_optional
from echosphere.services.ws_manager import ws_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feedback"])


def to_read(fb: Feedback, include_contact: bool = False) -> FeedbackRead:
    """Serialize a report; public views omit the contact email."""
    read = FeedbackRead.model_validate(fb)
    if not include_contact:
        read.contact_email = None
    return read


def _can_see_contact(auth: AuthContext | None, organization_id: str) -> bool:
    return auth is not None and auth.is_staff_of(organization_id)


async def _get_feedback_or_404(db: AsyncSession, feedback_id: str) -> Feedback:
    fb = await crud.get_feedback(db, feedback_id)
    if not fb:
        raise HTTPException(404, "Feedback not found")
    return fb


# ── Public endpoints ─────────────────────────────────────

@router.get("/api/organizations/{org_id}/feedback", response_model=list[FeedbackRead])
async def list_feedback(
    org_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    auth: AuthContext | None = Depends(optional_auth),
    db: AsyncSession = Depends(get_db),
):
    """One page of reports, newest first."""
    items = await crud.list_feedback(db, org_id, limit=limit, offset=offset)
    include_contact = _can_see_contact(auth, org_id)
    return [to_read(fb, include_contact) for fb in items]


@router.post("/api/organizations/{org_id}/feedback", response_model=FeedbackRead, status_code=201)
async def create_feedback(
    org_id: str,
    body: FeedbackCreate,
    auth: AuthContext | None = Depends(optional_auth),
    db: AsyncSession = Depends(get_db),
):
    """Persist a classified report and push it to the organization's live feed."""
    org = await get_writable_organization(db, org_id)
    if not org:
        raise HTTPException(404, "Organization not found")
    if body.id and await crud.get_feedback(db, body.id):
        raise HTTPException(409, "Feedback with this id already exists")

    fields = body.model_dump(exclude_none=True)
    fields["location"] = body.location.model_dump()
    fields["content"] = sanitize_text(body.content)
    fields["author_name"] = sanitize_optional(body.author_name)
    fields["contact_email"] = sanitize_optional(body.contact_email)
    fields["summary"] = sanitize_optional(body.summary)
    # Attribution comes from the session, never from the payload
    fields["user_id"] = auth.user_id if auth else None
    fields["status"] = "received"
    fields["votes"] = 0

    fb = await crud.create_feedback(db, org.id, **fields)

    await ws_manager.broadcast(org.id, WSMessage(
        event="feedback_inserted",
        organization_id=org.id,
        data=to_read(fb).model_dump(mode="json"),
    ).model_dump())
    return to_read(fb, include_contact=_can_see_contact(auth, org.id))


@router.get("/api/feedback/{feedback_id}", response_model=FeedbackRead)
async def get_feedback(
    feedback_id: str,
    auth: AuthContext | None = Depends(optional_auth),
    db: AsyncSession = Depends(get_db),
):
    fb = await _get_feedback_or_404(db, feedback_id)
    return to_read(fb, _can_see_contact(auth, fb.organization_id))


@router.post("/api/feedback/{feedback_id}/votes", response_model=FeedbackRead)
async def upvote_feedback(feedback_id: str, db: AsyncSession = Depends(get_db)):
    """Residents confirm an existing report instead of filing a duplicate."""
    fb = await _get_feedback_or_404(db, feedback_id)
    return to_read(await crud.increment_votes(db, fb))


# ── Staff endpoints ──────────────────────────────────────

@router.patch("/api/feedback/{feedback_id}/status", response_model=FeedbackRead)
async def update_status(
    feedback_id: str,
    body: StatusUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Any-to-any status transition."""
    fb = await _get_feedback_or_404(db, feedback_id)
    ensure_staff(auth, fb.organization_id)
    previous = fb.status
    fb = await crud.update_feedback_status(db, fb, body.status)

    if body.status == "resolved" and previous != "resolved" and fb.contact_email:
        org = await crud.get_organization(db, fb.organization_id)
        from echosphere.services.email import send_status_update_email
        await asyncio.to_thread(
            send_status_update_email, fb.contact_email,
            org.name if org else "your city", fb.category, fb.status,
        )

    await ws_manager.broadcast(fb.organization_id, WSMessage(
        event="feedback_updated",
        organization_id=fb.organization_id,
        data=to_read(fb).model_dump(mode="json"),
    ).model_dump())
    return to_read(fb, include_contact=True)


@router.post("/api/feedback/{feedback_id}/notes", response_model=FeedbackRead)
async def add_note(
    feedback_id: str,
    body: NoteCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    fb = await _get_feedback_or_404(db, feedback_id)
    ensure_staff(auth, fb.organization_id)
    text = sanitize_text(body.text)
    if not text:
        raise HTTPException(422, "Note is empty")
    fb = await crud.append_feedback_note(db, fb, text, auth.display_name or auth.email)
    return to_read(fb, include_contact=True)


@router.post("/api/feedback/{feedback_id}/draft-response", response_model=TextResult)
async def draft_response(
    feedback_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """AI-drafted reply to the resident, for staff to edit before sending."""
    fb = await _get_feedback_or_404(db, feedback_id)
    ensure_staff(auth, fb.organization_id)
    from echosphere.agents.assistant.tasks import draft_response as _draft
    try:
        text = await _draft(fb.status, fb.category, fb.content, fb.sentiment)
    except ConfigurationError as e:
        raise HTTPException(503, e.message)
    except ExternalServiceError as e:
        raise HTTPException(502, e.message)
    return TextResult(text=text)


@router.post("/api/feedback/{feedback_id}/respond")
async def respond_to_resident(
    feedback_id: str,
    body: ResponseEmail,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    fb = await _get_feedback_or_404(db, feedback_id)
    ensure_staff(auth, fb.organization_id)
    if not fb.contact_email:
        raise HTTPException(422, "The resident did not leave a contact email")

    from echosphere.services.email import send_email
    try:
        await asyncio.to_thread(send_email, fb.contact_email, body.subject, body.body)
    except ConfigurationError as e:
        raise HTTPException(503, e.message)
    except ExternalServiceError as e:
        raise HTTPException(502, e.message)
    return {"sent": True}


@router.get("/api/organizations/{org_id}/export.csv")
async def export_feedback_csv(
    org_id: str,
    auth: AuthContext = Depends(require_org_staff),
    db: AsyncSession = Depends(get_db),
):
    items = await crud.list_all_feedback(db, org_id)
    return Response(
        content=export_csv(items),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename()}"'},
    )


@router.get("/api/organizations/{org_id}/report.html")
async def html_report(
    org_id: str,
    auth: AuthContext = Depends(require_org_staff),
    db: AsyncSession = Depends(get_db),
):
    org = await crud.get_organization(db, org_id)
    if not org:
        raise HTTPException(404, "Organization not found")
    return Response(content=await generate_html_report(db, org), media_type="text/html")
