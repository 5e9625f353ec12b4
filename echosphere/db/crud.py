"""CRUD operations for organizations, feedback reports and users."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.models import Organization, Feedback, User


# ── Organization ─────────────────────────────────────────

async def create_organization(
    db: AsyncSession, name: str, slug: str,
    center: dict[str, float], focus_area: str = "",
    questions: list[str] | None = None,
) -> Organization:
    org = Organization(
        name=name, slug=slug.lower(), center=center,
        focus_area=focus_area, questions=questions or [],
    )
    db.add(org)
    await db.commit()
    await db.refresh(org)
    return org


async def get_organization(db: AsyncSession, org_id: str) -> Organization | None:
    return await db.get(Organization, org_id)


async def get_organization_by_slug(db: AsyncSession, slug: str) -> Organization | None:
    result = await db.execute(
        select(Organization).where(Organization.slug == slug.lower())
    )
    return result.scalars().first()


async def list_organizations(db: AsyncSession) -> list[Organization]:
    result = await db.execute(select(Organization).order_by(Organization.name))
    return list(result.scalars().all())


# ── Feedback ─────────────────────────────────────────────

async def create_feedback(db: AsyncSession, organization_id: str, **fields: Any) -> Feedback:
    """Insert a report. ``id`` may be supplied by the client (generated locally)."""
    fb = Feedback(organization_id=organization_id, **fields)
    db.add(fb)
    await db.commit()
    await db.refresh(fb)
    return fb


async def get_feedback(db: AsyncSession, feedback_id: str) -> Feedback | None:
    return await db.get(Feedback, feedback_id)


async def list_feedback(
    db: AsyncSession, organization_id: str, limit: int = 50, offset: int = 0,
) -> list[Feedback]:
    """One page of an organization's reports, newest first."""
    result = await db.execute(
        select(Feedback)
        .where(Feedback.organization_id == organization_id)
        .order_by(Feedback.timestamp.desc(), Feedback.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_all_feedback(db: AsyncSession, organization_id: str) -> list[Feedback]:
    result = await db.execute(
        select(Feedback)
        .where(Feedback.organization_id == organization_id)
        .order_by(Feedback.timestamp.desc())
    )
    return list(result.scalars().all())


async def update_feedback_status(db: AsyncSession, fb: Feedback, status: str) -> Feedback:
    fb.status = status
    await db.commit()
    await db.refresh(fb)
    return fb


async def append_feedback_note(db: AsyncSession, fb: Feedback, text: str, author: str) -> Feedback:
    note = {
        "text": text,
        "author": author,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    # Reassign so the JSON column is flagged dirty
    fb.admin_notes = [*(fb.admin_notes or []), note]
    await db.commit()
    await db.refresh(fb)
    return fb


async def increment_votes(db: AsyncSession, fb: Feedback) -> Feedback:
    fb.votes = (fb.votes or 0) + 1
    await db.commit()
    await db.refresh(fb)
    return fb


# ── User ─────────────────────────────────────────────────

async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalars().first()


async def create_user(
    db: AsyncSession, email: str, password_hash: str,
    display_name: str = "", role: str = "citizen",
    organization_id: str | None = None,
) -> User:
    user = User(
        email=email.lower(),
        password_hash=password_hash,
        display_name=display_name or email.split("@")[0],
        role=role,
        organization_id=organization_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user
