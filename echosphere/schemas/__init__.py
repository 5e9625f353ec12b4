"""Pydantic request/response schemas."""

from echosphere.schemas.organization import Location, OrganizationCreate, OrganizationRead
from echosphere.schemas.feedback import (
    AdminNote, FeedbackCreate, FeedbackRead, StatusUpdate, NoteCreate, ResponseEmail,
)
from echosphere.schemas.analysis import (
    AnalyzeRequest, ClassificationResult, DuplicateCandidate, DuplicateRequest,
    DuplicateVerdict, SurveyRequest, SurveyQuestions, TextResult,
    CheckoutRequest, CheckoutRead,
)
from echosphere.schemas.auth import SignupRequest, LoginRequest, Identity
from echosphere.schemas.ws_messages import WSMessage

__all__ = [
    "Location", "OrganizationCreate", "OrganizationRead",
    "AdminNote", "FeedbackCreate", "FeedbackRead", "StatusUpdate", "NoteCreate", "ResponseEmail",
    "AnalyzeRequest", "ClassificationResult", "DuplicateCandidate", "DuplicateRequest",
    "DuplicateVerdict", "SurveyRequest", "SurveyQuestions", "TextResult",
    "CheckoutRequest", "CheckoutRead",
    "SignupRequest", "LoginRequest", "Identity",
    "WSMessage",
]
