"""SQLAlchemy ORM models.

Everything lives in one database; feedback rows are scoped by organization_id.
"""

from echosphere.models.base import Base
from echosphere.models.organization import Organization
from echosphere.models.feedback import Feedback, FEEDBACK_STATUSES
from echosphere.models.auth_models import User, UserSession

__all__ = [
    "Base", "Organization", "Feedback", "FEEDBACK_STATUSES",
    "User", "UserSession",
]
