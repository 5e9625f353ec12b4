"""Async HTTP/WebSocket client for the EchoSphere backend."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

import httpx
import websockets

from echosphere.config import get_settings
from echosphere.errors import ConfigurationError, ExternalServiceError
from echosphere.schemas import (
    AnalyzeRequest, ClassificationResult, DuplicateCandidate, DuplicateVerdict,
    FeedbackCreate, FeedbackRead, OrganizationRead,
)

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], Awaitable[None] | None]


class Subscription:
    """A live push-feed subscription; ``close()`` releases it."""

    def __init__(self, organization_id: str, task: asyncio.Task):
        self.organization_id = organization_id
        self._task = task

    @property
    def closed(self) -> bool:
        return self._task.done()

    async def close(self) -> None:
        if not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass


class EchoSphereClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        cfg = get_settings().client
        self.base_url = (base_url or cfg.base_url).rstrip("/")
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = http or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else cfg.timeout_seconds,
            headers=headers,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "EchoSphereClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Could not reach the server: {e}") from e
        if resp.status_code == 503:
            raise ConfigurationError(_detail(resp))
        if resp.is_error:
            raise ExternalServiceError(_detail(resp))
        return resp

    # ── AI ───────────────────────────────────────────────

    async def analyze(self, request: AnalyzeRequest) -> ClassificationResult:
        resp = await self._request("POST", "/api/analyze", json=request.model_dump())
        try:
            return ClassificationResult.model_validate(resp.json())
        except ValueError as e:
            raise ExternalServiceError("The classifier returned an unreadable response.") from e

    async def check_duplicates(self, text: str, candidates: list[DuplicateCandidate]) -> DuplicateVerdict:
        resp = await self._request("POST", "/api/analyze/duplicates", json={
            "text": text, "candidates": [c.model_dump() for c in candidates],
        })
        return DuplicateVerdict.model_validate(resp.json())

    # ── Storage ──────────────────────────────────────────

    async def upload_image(self, data: bytes, filename: str, organization_id: str, blur: bool = False) -> str | None:
        resp = await self._request(
            "POST", "/api/uploads",
            files={"file": (filename, data)},
            data={"organization_id": organization_id, "blur": "true" if blur else "false"},
        )
        return resp.json().get("url") or None

    # ── Feedback ─────────────────────────────────────────

    async def create_feedback(self, organization_id: str, report: FeedbackCreate) -> FeedbackRead:
        resp = await self._request(
            "POST", f"/api/organizations/{organization_id}/feedback",
            json=report.model_dump(mode="json"),
        )
        return FeedbackRead.model_validate(resp.json())

    async def list_feedback(self, organization_id: str, limit: int, offset: int = 0) -> list[FeedbackRead]:
        resp = await self._request(
            "GET", f"/api/organizations/{organization_id}/feedback",
            params={"limit": limit, "offset": offset},
        )
        return [FeedbackRead.model_validate(item) for item in resp.json()]

    async def upvote(self, feedback_id: str) -> FeedbackRead:
        resp = await self._request("POST", f"/api/feedback/{feedback_id}/votes")
        return FeedbackRead.model_validate(resp.json())

    # ── Organizations ────────────────────────────────────

    async def get_organization_by_slug(self, slug: str) -> OrganizationRead | None:
        try:
            resp = await self._request("GET", f"/api/organizations/by-slug/{slug.lower()}")
        except ExternalServiceError:
            logger.warning("Organization lookup failed for slug %r", slug)
            return None
        return OrganizationRead.model_validate(resp.json())

    async def get_organization(self, organization_id: str) -> OrganizationRead | None:
        try:
            resp = await self._request("GET", f"/api/organizations/{organization_id}")
        except ExternalServiceError:
            logger.warning("Organization lookup failed for id %s", organization_id)
            return None
        return OrganizationRead.model_validate(resp.json())

    # ── Push feed ────────────────────────────────────────

    def _ws_url(self, organization_id: str) -> str:
        scheme, _, rest = self.base_url.partition("://")
        ws_scheme = "wss" if scheme == "https" else "ws"
        return f"{ws_scheme}://{rest}/api/ws/organizations/{organization_id}"

    async def subscribe(self, organization_id: str, handler: EventHandler) -> Subscription:
        """Deliver every push event for an organization to ``handler`` until closed."""
        url = self._ws_url(organization_id)

        async def _listen():
            try:
                async with websockets.connect(url) as ws:
                    async for message in ws:
                        try:
                            event = json.loads(message)
                        except ValueError:
                            logger.warning("Ignoring malformed push event")
                            continue
                        result = handler(event)
                        if asyncio.iscoroutine(result):
                            await result
            except (OSError, websockets.WebSocketException):
                logger.exception("Push feed for %s disconnected", organization_id)

        task = asyncio.create_task(_listen())
        return Subscription(organization_id, task)


def _detail(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    detail = data.get("detail") if isinstance(data, dict) else None
    if isinstance(detail, str) and detail:
        return detail
    return f"Request failed with status {resp.status_code}"
