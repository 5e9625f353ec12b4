from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException, Request

from echosphere.errors import ConfigurationError, ExternalServiceError
from echosphere.schemas import CheckoutRequest, CheckoutRead
from echosphere.services.billing import UnknownPlanError, create_checkout_session

router = APIRouter(prefix="/api/billing", tags=["billing"])


@router.post("/checkout", response_model=CheckoutRead)
async def checkout(body: CheckoutRequest, request: Request):
    """Start a Stripe Checkout for a paid plan; the free plan needs none."""
    origin = request.headers.get("origin", "")
    try:
        result = await asyncio.to_thread(create_checkout_session, body.plan, origin)
    except UnknownPlanError as e:
        raise HTTPException(400, str(e))
    except ConfigurationError as e:
        raise HTTPException(503, e.message)
    except ExternalServiceError as e:
        raise HTTPException(502, e.message)
    return CheckoutRead(url=result["url"])
