"""Stripe Checkout for subscription plans."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urljoin

from stripe import StripeClient

from echosphere.config import get_settings
from echosphere.errors import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)

FREE_PLAN = "free"


class UnknownPlanError(ValueError):
    pass


def _client() -> StripeClient:
    key = get_settings().billing.stripe_secret_key
    if not key:
        raise ConfigurationError("Payments are not configured. Set STRIPE_SECRET_KEY.")
    return StripeClient(key)


def _absolute_url(base: str, path: str) -> str:
    return urljoin(base.rstrip("/") + "/", path.lstrip("/"))


def resolve_price_id(plan: str) -> str:
    """Map a plan name to its Stripe Price id.

    Unknown plans raise UnknownPlanError; known plans without a configured
    price raise ConfigurationError rather than failing silently.
    """
    prices = get_settings().billing.prices
    if plan not in prices:
        raise UnknownPlanError(f"Invalid plan selected: {plan}")
    price_id = prices[plan]
    if not price_id:
        raise ConfigurationError(f"No Stripe price configured for the '{plan}' plan.")
    return price_id


def create_checkout_session(plan: str, origin: str = "") -> dict[str, Any]:
    """Create a Stripe Checkout Session. Returns {"url": <redirect url or None>}."""
    if plan == FREE_PLAN:
        return {"url": None}

    price_id = resolve_price_id(plan)
    client = _client()
    base = origin or get_settings().app_url
    params: dict[str, Any] = {
        "mode": "subscription",
        "line_items": [{"price": price_id, "quantity": 1}],
        "success_url": _absolute_url(base, "/?status=success"),
        "cancel_url": _absolute_url(base, "/?status=cancelled"),
        "metadata": {"plan": plan},
    }
    try:
        session = client.checkout.sessions.create(params=params)
    except Exception as e:
        logger.exception("Stripe checkout failed for plan %s", plan)
        raise ExternalServiceError("Could not start checkout. Please try again.") from e
    return {"url": getattr(session, "url", None)}
