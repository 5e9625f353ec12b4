"""Keeps a local, newest-first list of an organization's reports in step with the server.

Three sources write into the list: paged fetches (tail), push events (head)
and optimistic inserts from the submission pipeline (head). Every write is
keyed by report id, so the same report arriving twice is a no-op.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from echosphere.client.api import EchoSphereClient, Subscription
from echosphere.client.session import ClientSession
from echosphere.config import get_settings
from echosphere.errors import ConfigurationError, ExternalServiceError
from echosphere.schemas import FeedbackRead, Identity, OrganizationRead

logger = logging.getLogger(__name__)

KARMA_PER_REPORT = 10
KARMA_PER_RESOLVED = 50


def own_reports(reports: list[FeedbackRead], identity: Identity | None) -> list[FeedbackRead]:
    if identity is None:
        return []
    return [r for r in reports if r.user_id == identity.id]


def compute_karma(reports: list[FeedbackRead], identity: Identity | None) -> int:
    """10 points per own report plus 50 per own resolved report."""
    mine = own_reports(reports, identity)
    resolved = sum(1 for r in mine if r.status == "resolved")
    return KARMA_PER_REPORT * len(mine) + KARMA_PER_RESOLVED * resolved


def _feed_line(report: FeedbackRead, prefix: str = "", when: datetime | None = None) -> str:
    time = (when or report.timestamp).strftime("%H:%M")
    return f"{time} • {prefix}{report.category} ({report.sentiment})"


class FeedSynchronizer:
    def __init__(
        self,
        api: EchoSphereClient,
        session: ClientSession,
        page_size: int | None = None,
        live_feed_size: int | None = None,
    ):
        cfg = get_settings().sync
        self.api = api
        self.session = session
        self.page_size = page_size or cfg.page_size
        self.live_feed_size = live_feed_size or cfg.live_feed_size

        self.organization: OrganizationRead | None = None
        self.reports: list[FeedbackRead] = []
        self.live_feed: list[str] = []
        self.has_more = True
        self._offset = 0
        self._loading = False
        self._subscription: Subscription | None = None

    # ── Derived state ────────────────────────────────────

    @property
    def own_reports(self) -> list[FeedbackRead]:
        return own_reports(self.reports, self.session.identity)

    @property
    def karma(self) -> int:
        return compute_karma(self.reports, self.session.identity)

    @property
    def is_loading(self) -> bool:
        return self._loading

    def _contains(self, report_id: str) -> bool:
        return any(r.id == report_id for r in self.reports)

    # ── Paging ───────────────────────────────────────────

    async def load_initial(self) -> None:
        """Load the first page and reset the cursor.

        Reports inserted while the page was in flight (optimistic or pushed)
        are kept ahead of it. On failure the list is left as is and
        ``load_more`` retries from the start.
        """
        self._offset = 0
        self.has_more = True
        if self.organization is None:
            self.reports = []
            self.has_more = False
            return

        held = {r.id for r in self.reports}
        self._loading = True
        try:
            page = await self.api.list_feedback(self.organization.id, limit=self.page_size, offset=0)
        except (ConfigurationError, ExternalServiceError):
            logger.exception("Loading reports failed")
            return
        finally:
            self._loading = False

        page_ids = {r.id for r in page}
        arrived = [r for r in self.reports if r.id not in held and r.id not in page_ids]
        self.reports = arrived + page
        self._offset = len(page)
        self.has_more = len(page) >= self.page_size
        self.live_feed = [_feed_line(r) for r in page[:self.live_feed_size]]

    async def load_more(self) -> None:
        """Append the next page; skipped while a load runs or when exhausted."""
        if self._loading or not self.has_more or self.organization is None:
            return

        self._loading = True
        try:
            page = await self.api.list_feedback(
                self.organization.id, limit=self.page_size, offset=self._offset,
            )
        except (ConfigurationError, ExternalServiceError):
            logger.exception("Loading more reports failed")
            return
        finally:
            self._loading = False

        self._offset += len(page)
        if len(page) < self.page_size:
            self.has_more = False
        # Optimistic and pushed inserts shift server offsets; skip what we already hold
        self.reports.extend(r for r in page if not self._contains(r.id))

    # ── Inserts ──────────────────────────────────────────

    def insert_optimistic(self, report: FeedbackRead) -> None:
        if not self._contains(report.id):
            self.reports.insert(0, report)

    def handle_event(self, event: dict[str, Any]) -> None:
        """Merge one push event into the list."""
        if self.organization is None or event.get("organization_id") != self.organization.id:
            return
        kind = event.get("event")
        if kind not in ("feedback_inserted", "feedback_updated"):
            return
        try:
            report = FeedbackRead.model_validate(event.get("data") or {})
        except ValidationError:
            logger.warning("Ignoring malformed %s event", kind)
            return
        if report.organization_id and report.organization_id != self.organization.id:
            return

        if kind == "feedback_updated":
            self.reports = [report if r.id == report.id else r for r in self.reports]
            return

        if self._contains(report.id):
            return
        self.reports.insert(0, report)
        line = _feed_line(report, prefix="New Report: ", when=datetime.now())
        self.live_feed = [line, *self.live_feed][:self.live_feed_size]

    # ── Organization lifecycle ───────────────────────────

    async def switch_organization(self, organization: OrganizationRead) -> None:
        """Release the current subscription, then load and subscribe to ``organization``."""
        await self.close()
        self.organization = organization
        self.session.current_organization_id = organization.id
        self.reports = []
        self.live_feed = []
        await self.load_initial()
        self._subscription = await self.api.subscribe(organization.id, self.handle_event)

    async def close(self) -> None:
        if self._subscription is not None:
            await self._subscription.close()
            self._subscription = None
