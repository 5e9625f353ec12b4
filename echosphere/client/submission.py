"""Report submission: validate, classify, upload, insert optimistically, persist.

``SubmissionPipeline.submit`` never raises for expected failures; every
outcome is a ``SubmissionResult`` whose ``error`` is safe to show the
resident.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from ulid import ULID

from echosphere.agents.classifier.prompts import DEFAULT_REFUSAL, IMAGE_ONLY_TEXT
from echosphere.client.admission import AdmissionController
from echosphere.client.api import EchoSphereClient
from echosphere.client.session import ClientSession
from echosphere.client.sync import FeedSynchronizer
from echosphere.config import get_settings
from echosphere.errors import (
    ConfigurationError, ExternalServiceError, PolicyRefusal, SubmissionValidationError,
)
from echosphere.schemas import (
    AnalyzeRequest, ClassificationResult, DuplicateCandidate, FeedbackCreate, FeedbackRead, Location,
)
from echosphere.services.sanitizer import sanitize_text, sanitize_optional

logger = logging.getLogger(__name__)

ANONYMOUS_AUTHOR = "Anonymous Citizen"
CHALLENGE_MISSING = "Security check incomplete. Please complete the verification."
CATEGORY_MISSING = "Please select a category for your report."
RATE_LIMITED = "Rate limit exceeded. Please wait {seconds} seconds."
NO_ORGANIZATION = "Please choose a city before submitting."
ANALYSIS_FAILED = "We couldn't analyze your report right now. Please try again."

SubmissionStatus = Literal["noop", "rejected", "refused", "failed", "unsynced", "submitted"]


@dataclass
class ReportDraft:
    location: Location
    content: str = ""
    category: str = ""
    challenge_token: str = ""
    image: bytes | None = None
    image_filename: str = "photo.jpg"
    image_mime_type: str = "image/jpeg"
    blur_image: bool = False
    author_name: str = ""
    contact_email: str = ""
    attachments: list[str] = field(default_factory=list)


@dataclass
class SubmissionResult:
    status: SubmissionStatus
    report: FeedbackRead | None = None
    error: str | None = None
    wait_seconds: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "submitted"


def _data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class SubmissionPipeline:
    def __init__(
        self,
        api: EchoSphereClient,
        session: ClientSession,
        synchronizer: FeedSynchronizer,
        admission: AdmissionController | None = None,
        language: str | None = None,
    ):
        self.api = api
        self.session = session
        self.synchronizer = synchronizer
        self.admission = admission or AdmissionController(session)
        self.language = language or get_settings().ai.default_language

    async def submit(self, draft: ReportDraft) -> SubmissionResult:
        if not draft.content.strip() and not draft.image:
            return SubmissionResult(status="noop")

        try:
            organization_id = self._check_preconditions(draft)
        except SubmissionValidationError as e:
            return SubmissionResult(status="rejected", error=e.message, wait_seconds=e.wait_seconds)

        content = sanitize_text(draft.content)
        image_uri = _data_uri(draft.image, draft.image_mime_type) if draft.image else None

        try:
            classification = await self._classify(content, image_uri, draft.category)
        except PolicyRefusal as e:
            return SubmissionResult(status="refused", error=e.message)
        except ConfigurationError as e:
            return SubmissionResult(status="failed", error=e.message)
        except ExternalServiceError:
            logger.exception("Classification failed")
            return SubmissionResult(status="failed", error=ANALYSIS_FAILED)

        image_url = None
        if draft.image:
            image_url = await self._upload(draft, organization_id) or image_uri

        report = self._build_report(draft, organization_id, content, classification, image_url)
        self.synchronizer.insert_optimistic(report)

        try:
            saved = await self.api.create_feedback(
                organization_id,
                FeedbackCreate(**report.model_dump(exclude={"organization_id", "status", "votes", "admin_notes"})),
            )
        except (ExternalServiceError, ConfigurationError) as e:
            logger.exception("Persisting report %s failed", report.id)
            return SubmissionResult(status="unsynced", report=report, error=e.message)

        self.admission.record()
        self.session.rate_limit_wait = 0
        return SubmissionResult(status="submitted", report=saved)

    def _check_preconditions(self, draft: ReportDraft) -> str:
        if not draft.challenge_token:
            raise SubmissionValidationError(CHALLENGE_MISSING)
        if not draft.category.strip():
            raise SubmissionValidationError(CATEGORY_MISSING)
        if not self.admission.check():
            wait = max(1, self.admission.time_until_reset())
            self.session.rate_limit_wait = wait
            raise SubmissionValidationError(RATE_LIMITED.format(seconds=wait), wait_seconds=wait)

        organization = self.synchronizer.organization
        organization_id = organization.id if organization else self.session.current_organization_id
        if not organization_id:
            raise SubmissionValidationError(NO_ORGANIZATION)
        return organization_id

    async def _classify(self, content: str, image_uri: str | None, category: str) -> ClassificationResult:
        result = await self.api.analyze(AnalyzeRequest(
            text=content or IMAGE_ONLY_TEXT,
            image_base64=image_uri,
            category_hint=category,
            language=self.language,
        ))
        if not result.is_civic_issue:
            raise PolicyRefusal(result.refusal_reason or DEFAULT_REFUSAL)
        return result

    async def _upload(self, draft: ReportDraft, organization_id: str) -> str | None:
        try:
            return await self.api.upload_image(
                draft.image, draft.image_filename, organization_id, blur=draft.blur_image,
            )
        except (ExternalServiceError, ConfigurationError):
            logger.warning("Image upload failed; keeping the inline copy", exc_info=True)
            return None

    def _build_report(
        self,
        draft: ReportDraft,
        organization_id: str,
        content: str,
        classification: ClassificationResult,
        image_url: str | None,
    ) -> FeedbackRead:
        identity = self.session.identity
        if identity is not None:
            author_name = identity.email.split("@")[0] or ANONYMOUS_AUTHOR
            contact_email = identity.email
            user_id = identity.id
        else:
            author_name = sanitize_optional(draft.author_name) or ANONYMOUS_AUTHOR
            contact_email = sanitize_optional(draft.contact_email)
            user_id = None

        attachments = list(draft.attachments)
        if draft.image and "image" not in attachments:
            attachments.append("image")

        return FeedbackRead(
            id=str(ULID()),
            organization_id=organization_id,
            user_id=user_id,
            location=draft.location,
            content=content,
            timestamp=datetime.now(timezone.utc),
            sentiment=classification.sentiment,
            category=classification.category or draft.category,
            summary=classification.summary or None,
            risk_score=classification.risk_score,
            eco_impact_score=classification.eco_impact_score,
            eco_impact_reasoning=classification.eco_impact_reasoning,
            status="received",
            author_name=author_name,
            contact_email=contact_email,
            attachments=attachments,
            image_url=image_url,
            votes=0,
        )


class DuplicateWatcher:
    """Debounced, advisory check for nearby reports describing the same issue."""

    def __init__(
        self,
        api: EchoSphereClient,
        synchronizer: FeedSynchronizer,
        debounce_seconds: float | None = None,
        radius: float | None = None,
        min_content_length: int | None = None,
    ):
        cfg = get_settings().duplicates
        self.api = api
        self.synchronizer = synchronizer
        self.debounce_seconds = cfg.debounce_seconds if debounce_seconds is None else debounce_seconds
        self.radius = cfg.radius if radius is None else radius
        self.min_content_length = cfg.min_content_length if min_content_length is None else min_content_length
        self.duplicate_id: str | None = None
        self.pending: asyncio.Task | None = None

    def on_change(self, content: str, location: Location) -> None:
        """Reschedule the check for the latest draft text, dropping any pending one."""
        if self.duplicate_id is not None:
            return
        self.cancel()
        if len(content) < self.min_content_length:
            return
        self.pending = asyncio.create_task(self._check_later(content, location))

    def cancel(self) -> None:
        if self.pending is not None and not self.pending.done():
            self.pending.cancel()
        self.pending = None

    def nearby(self, location: Location) -> list[DuplicateCandidate]:
        return [
            DuplicateCandidate(id=r.id, text=r.content)
            for r in self.synchronizer.reports
            if math.hypot(r.location.x - location.x, r.location.y - location.y) < self.radius
        ]

    async def _check_later(self, content: str, location: Location) -> None:
        await asyncio.sleep(self.debounce_seconds)
        candidates = self.nearby(location)
        if not candidates:
            return
        try:
            verdict = await self.api.check_duplicates(content, candidates)
        except (ExternalServiceError, ConfigurationError):
            logger.warning("Duplicate check failed; ignoring", exc_info=True)
            return
        if verdict.is_duplicate and verdict.duplicate_id:
            self.duplicate_id = verdict.duplicate_id

    async def upvote(self) -> FeedbackRead | None:
        """Add a vote to the matched report instead of filing a new one."""
        if self.duplicate_id is None:
            return None
        updated = await self.api.upvote(self.duplicate_id)
        self.synchronizer.reports = [
            updated if r.id == updated.id else r for r in self.synchronizer.reports
        ]
        return updated
