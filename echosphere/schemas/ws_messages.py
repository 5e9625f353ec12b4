from __future__ import annotations
from typing import Any
from pydantic import BaseModel


class WSMessage(BaseModel):
    event: str  # feedback_inserted | feedback_updated
    organization_id: str = ""
    data: dict[str, Any] = {}
