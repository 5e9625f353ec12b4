"""Client session state: local store, current-organization pointer, identity."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from echosphere.client.storage import LocalStore, JsonFileStore, MemoryStore
from echosphere.config import get_settings
from echosphere.schemas import Identity

if TYPE_CHECKING:
    from echosphere.client.api import EchoSphereClient

logger = logging.getLogger(__name__)

CURRENT_ORGANIZATION_KEY = "echosphere_current_org"


@dataclass
class ClientSession:
    store: LocalStore = field(default_factory=MemoryStore)
    identity: Identity | None = None
    # Seconds the resident must wait before the next submission; 0 when unblocked
    rate_limit_wait: int = 0
    rate_limit_key: str = field(default_factory=lambda: get_settings().rate_limit.storage_key)

    @classmethod
    def open(cls, path: str | Path | None = None) -> "ClientSession":
        """Open a session backed by a JSON file (``client.store_path`` by default)."""
        return cls(store=JsonFileStore(path or get_settings().client.store_path))

    @property
    def current_organization_id(self) -> str | None:
        try:
            value = self.store.get(CURRENT_ORGANIZATION_KEY)
        except (OSError, ValueError):
            logger.warning("Could not read the cached organization pointer", exc_info=True)
            return None
        return value if isinstance(value, str) and value else None

    @current_organization_id.setter
    def current_organization_id(self, organization_id: str | None) -> None:
        if organization_id:
            self.store.set(CURRENT_ORGANIZATION_KEY, organization_id)
        else:
            self.store.remove(CURRENT_ORGANIZATION_KEY)

    def reset(self) -> None:
        """Clear the rate-limit window and the organization pointer."""
        self.store.remove(self.rate_limit_key)
        self.store.remove(CURRENT_ORGANIZATION_KEY)
        self.rate_limit_wait = 0


async def resolve_current_organization(
    api: "EchoSphereClient",
    session: ClientSession,
    slug: str | None = None,
):
    """Pick the active organization.

    An explicit slug (the ``?org=`` link) wins and its id is cached; otherwise
    the cached pointer is used. Returns None when neither resolves.
    """
    if slug:
        org = await api.get_organization_by_slug(slug)
        if org is not None:
            session.current_organization_id = org.id
            return org
        logger.warning("Organization slug %r not found", slug)

    cached = session.current_organization_id
    if cached:
        return await api.get_organization(cached)
    return None
