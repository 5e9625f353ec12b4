"""Integration tests for API endpoints."""

from __future__ import annotations

import io
from datetime import datetime, timezone, timedelta
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from echosphere.models import Base, Organization, User, UserSession
from echosphere.main import app
from echosphere.db.engine import get_db
from echosphere.errors import ConfigurationError, ExternalServiceError
from echosphere.schemas import ClassificationResult
from echosphere.services.auth import hash_password, _hash_token, SESSION_COOKIE_NAME
from echosphere.services.ws_manager import ws_manager


# Raw session tokens for the test users
_STAFF_TOKEN = "test-staff-token-abc123"
_RESIDENT_TOKEN = "test-resident-token-xyz789"
_TEST_ORG_ID = "01TESTORGANIZATION00000000"


@pytest_asyncio.fixture
async def client():
    """Create a test client backed by an in-memory database."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    test_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Seed organization + staff user + resident + sessions
    async with test_factory() as db:
        org = Organization(
            id=_TEST_ORG_ID, name="Springfield", slug="springfield",
            center={"x": -89.65, "y": 39.78}, focus_area="Parks",
        )
        db.add(org)
        await db.flush()

        staff = User(
            organization_id=org.id, email="staff@springfield.gov", display_name="Staff",
            password_hash=hash_password("testpass123"), role="staff",
        )
        resident = User(
            email="resident@example.com", display_name="resident",
            password_hash=hash_password("testpass123"), role="citizen",
        )
        db.add_all([staff, resident])
        await db.flush()

        expires = datetime.now(timezone.utc) + timedelta(hours=24)
        db.add_all([
            UserSession(user_id=staff.id, token_hash=_hash_token(_STAFF_TOKEN), expires_at=expires),
            UserSession(user_id=resident.id, token_hash=_hash_token(_RESIDENT_TOKEN), expires_at=expires),
        ])
        await db.commit()

    async def override_get_db():
        async with test_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    await test_engine.dispose()


def as_staff():
    return {"Authorization": f"Bearer {_STAFF_TOKEN}"}


def as_resident():
    return {"Authorization": f"Bearer {_RESIDENT_TOKEN}"}


def report_body(**overrides):
    body = {
        "location": {"x": -89.65, "y": 39.78},
        "content": "Broken swing in the park",
        "sentiment": "negative",
        "category": "Parks",
        "risk_score": 40,
        "contact_email": "resident@example.com",
    }
    body.update(overrides)
    return body


# ── Organizations ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_organization_by_slug(client):
    r = await client.get("/api/organizations/by-slug/SPRINGFIELD")
    assert r.status_code == 200
    assert r.json()["id"] == _TEST_ORG_ID


@pytest.mark.asyncio
async def test_demo_slug_falls_back_to_demo_city(client):
    r = await client.get("/api/organizations/by-slug/demo")
    assert r.status_code == 200
    data = r.json()
    assert data["name"] == "Demo City"
    assert data["center"] == {"x": -118.2437, "y": 34.0522}


@pytest.mark.asyncio
async def test_unknown_slug_is_404(client):
    r = await client.get("/api/organizations/by-slug/atlantis")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_provision_organization(client):
    r = await client.post("/api/organizations", headers=as_resident(), json={
        "name": "Shelbyville", "region_code": "US-SHB", "center": {"x": 1, "y": 2},
    })
    assert r.status_code == 201
    data = r.json()
    assert data["slug"] == "us-shb"

    me = await client.get("/api/auth/me", headers=as_resident())
    assert me.json()["role"] == "staff"
    assert me.json()["organization_id"] == data["id"]


@pytest.mark.asyncio
async def test_provision_same_region_code_repeatedly(client):
    slugs = []
    for _ in range(3):
        r = await client.post("/api/organizations", headers=as_staff(), json={
            "name": "Springfield", "region_code": "Springfield", "center": {"x": 0, "y": 0},
        })
        assert r.status_code == 201
        slugs.append(r.json()["slug"])
    assert slugs == ["springfield-2", "springfield-3", "springfield-4"]


@pytest.mark.asyncio
async def test_provision_slug_race_is_conflict(client):
    from sqlalchemy.exc import IntegrityError

    race = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: organizations.slug"))
    with patch("echosphere.api.organizations.create_organization", AsyncMock(side_effect=race)):
        r = await client.post("/api/organizations", headers=as_resident(), json={
            "name": "X", "region_code": "X", "center": {"x": 0, "y": 0},
        })
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_provision_requires_auth(client):
    r = await client.post("/api/organizations", json={
        "name": "X", "region_code": "X", "center": {"x": 0, "y": 0},
    })
    assert r.status_code == 401


# ── Feedback ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_and_list_feedback(client):
    r = await client.post(
        f"/api/organizations/{_TEST_ORG_ID}/feedback",
        json=report_body(id="01CLIENTREPORT000000000000"),
    )
    assert r.status_code == 201
    data = r.json()
    assert data["id"] == "01CLIENTREPORT000000000000"
    assert data["status"] == "received"
    assert data["contact_email"] is None

    r = await client.get(f"/api/organizations/{_TEST_ORG_ID}/feedback")
    assert r.status_code == 200
    items = r.json()
    assert [i["id"] for i in items] == ["01CLIENTREPORT000000000000"]
    assert items[0]["contact_email"] is None

    r = await client.get(f"/api/organizations/{_TEST_ORG_ID}/feedback", headers=as_staff())
    assert r.json()[0]["contact_email"] == "resident@example.com"


@pytest.mark.asyncio
async def test_feedback_is_sanitized_and_attributed(client):
    r = await client.post(
        f"/api/organizations/{_TEST_ORG_ID}/feedback",
        headers=as_resident(),
        json=report_body(content="<script>steal()</script>Graffiti <b>on wall</b>", user_id="spoofed"),
    )
    data = r.json()
    assert data["content"] == "Graffiti on wall"
    assert data["user_id"] not in (None, "spoofed")


@pytest.mark.asyncio
async def test_duplicate_id_is_conflict(client):
    body = report_body(id="01DUPLICATEREPORT000000000")
    await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=body)
    r = await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=body)
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_feedback_pagination(client):
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    for i in range(5):
        await client.post(
            f"/api/organizations/{_TEST_ORG_ID}/feedback",
            json=report_body(content=f"report {i}", timestamp=(base + timedelta(minutes=i)).isoformat()),
        )
    r = await client.get(f"/api/organizations/{_TEST_ORG_ID}/feedback", params={"limit": 3})
    assert [i["content"] for i in r.json()] == ["report 4", "report 3", "report 2"]
    r = await client.get(f"/api/organizations/{_TEST_ORG_ID}/feedback", params={"limit": 3, "offset": 3})
    assert [i["content"] for i in r.json()] == ["report 1", "report 0"]


@pytest.mark.asyncio
async def test_create_feedback_in_demo_city(client):
    r = await client.post("/api/organizations/demo-org/feedback", json=report_body())
    assert r.status_code == 201
    r = await client.get("/api/organizations/by-slug/demo")
    assert r.json()["id"] == "demo-org"


@pytest.mark.asyncio
async def test_create_feedback_unknown_organization(client):
    r = await client.post("/api/organizations/nope/feedback", json=report_body())
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_insert_is_broadcast(client):
    with patch.object(ws_manager, "broadcast", new=AsyncMock()) as broadcast:
        r = await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=report_body())
    organization_id, message = broadcast.await_args.args
    assert organization_id == _TEST_ORG_ID
    assert set(message) == {"event", "organization_id", "data"}
    assert message["event"] == "feedback_inserted"
    assert message["data"]["id"] == r.json()["id"]
    assert message["data"]["contact_email"] is None


@pytest.mark.asyncio
async def test_status_update_is_staff_only(client):
    r = await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=report_body(contact_email=None))
    fb_id = r.json()["id"]

    r = await client.patch(f"/api/feedback/{fb_id}/status", json={"status": "resolved"}, headers=as_resident())
    assert r.status_code == 403

    r = await client.patch(f"/api/feedback/{fb_id}/status", json={"status": "resolved"}, headers=as_staff())
    assert r.status_code == 200
    assert r.json()["status"] == "resolved"

    r = await client.patch(f"/api/feedback/{fb_id}/status", json={"status": "triaged"}, headers=as_staff())
    assert r.json()["status"] == "triaged"


@pytest.mark.asyncio
async def test_resolving_emails_the_resident(client):
    r = await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=report_body())
    fb_id = r.json()["id"]
    with patch("echosphere.services.email.send_status_update_email", return_value=True) as send:
        r = await client.patch(f"/api/feedback/{fb_id}/status", json={"status": "resolved"}, headers=as_staff())
    assert r.status_code == 200
    assert send.call_args.args[0] == "resident@example.com"


@pytest.mark.asyncio
async def test_notes_and_votes(client):
    r = await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=report_body())
    fb_id = r.json()["id"]

    r = await client.post(f"/api/feedback/{fb_id}/notes", json={"text": "Crew assigned"}, headers=as_staff())
    assert r.status_code == 200
    assert r.json()["admin_notes"][0]["text"] == "Crew assigned"
    assert r.json()["admin_notes"][0]["author"] == "Staff"

    r = await client.post(f"/api/feedback/{fb_id}/votes")
    assert r.json()["votes"] == 1


@pytest.mark.asyncio
async def test_respond_without_email_key_is_503(client):
    r = await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=report_body())
    fb_id = r.json()["id"]
    with patch("echosphere.services.email.send_email", side_effect=ConfigurationError("Email is not configured.")):
        r = await client.post(
            f"/api/feedback/{fb_id}/respond", headers=as_staff(),
            json={"subject": "Update", "body": "Fixed."},
        )
    assert r.status_code == 503


@pytest.mark.asyncio
async def test_export_csv(client):
    await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=report_body())
    r = await client.get(f"/api/organizations/{_TEST_ORG_ID}/export.csv", headers=as_staff())
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    lines = r.text.strip().splitlines()
    assert lines[0].startswith("ID,Timestamp,Category")
    assert len(lines) == 2

    r = await client.get(f"/api/organizations/{_TEST_ORG_ID}/export.csv", headers=as_resident())
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_html_report(client):
    await client.post(f"/api/organizations/{_TEST_ORG_ID}/feedback", json=report_body())
    r = await client.get(f"/api/organizations/{_TEST_ORG_ID}/report.html", headers=as_staff())
    assert r.status_code == 200
    assert "Springfield" in r.text


# ── Analysis ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_analyze(client):
    result = ClassificationResult(sentiment="negative", category="Parks", risk_score=30)
    with patch("echosphere.api.analysis.run_classification", new=AsyncMock(return_value=result)):
        r = await client.post("/api/analyze", json={"text": "Broken swing", "category_hint": "Parks"})
    assert r.status_code == 200
    assert r.json()["category"] == "Parks"
    assert r.json()["is_civic_issue"] is True


@pytest.mark.asyncio
async def test_analyze_unconfigured_is_503(client):
    error = ConfigurationError("AI classification is not configured. Set OPENAI_API_KEY or ANTHROPIC_API_KEY.")
    with patch("echosphere.api.analysis.run_classification", new=AsyncMock(side_effect=error)):
        r = await client.post("/api/analyze", json={"text": "Broken swing"})
    assert r.status_code == 503
    assert "OPENAI_API_KEY" in r.json()["detail"]


@pytest.mark.asyncio
async def test_analyze_upstream_failure_is_502(client):
    with patch("echosphere.api.analysis.run_classification",
               new=AsyncMock(side_effect=ExternalServiceError("The AI service is unavailable."))):
        r = await client.post("/api/analyze", json={"text": "Broken swing"})
    assert r.status_code == 502


@pytest.mark.asyncio
async def test_analyze_empty_draft(client):
    r = await client.post("/api/analyze", json={"text": "  "})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_duplicates_unconfigured_is_no_duplicate(client):
    with patch("echosphere.agents.assistant.tasks.get_llm_provider", side_effect=ConfigurationError("no key")):
        r = await client.post("/api/analyze/duplicates", json={
            "text": "Broken swing", "candidates": [{"id": "a", "text": "Swing broken"}],
        })
    assert r.status_code == 200
    assert r.json() == {"is_duplicate": False, "duplicate_id": None}


@pytest.mark.asyncio
async def test_executive_report_requires_staff(client):
    r = await client.post(f"/api/organizations/{_TEST_ORG_ID}/report", headers=as_resident())
    assert r.status_code == 403

    r = await client.post(f"/api/organizations/{_TEST_ORG_ID}/report", headers=as_staff())
    assert r.status_code == 200
    assert r.json()["text"] == "No feedback has been submitted yet."


# ── Uploads, billing, pages, auth ─────────────────────────

@pytest.mark.asyncio
async def test_upload_returns_data_uri_when_unconfigured(client, monkeypatch):
    from echosphere.services import image_store
    monkeypatch.setattr(image_store._settings.storage, "public_base_url", "")

    from PIL import Image
    img = Image.new("RGB", (20, 20), color=(128, 128, 128))
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    buf.seek(0)

    r = await client.post(
        "/api/uploads",
        files={"file": ("photo.jpg", buf, "image/jpeg")},
        data={"organization_id": _TEST_ORG_ID},
    )
    assert r.status_code == 201
    assert r.json()["url"].startswith("data:image/jpeg;base64,")


@pytest.mark.asyncio
async def test_checkout_free_and_unknown_plans(client):
    r = await client.post("/api/billing/checkout", json={"plan": "free"})
    assert r.status_code == 200
    assert r.json() == {"url": None}

    r = await client.post("/api/billing/checkout", json={"plan": "platinum"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_content_pages(client):
    r = await client.get("/pricing")
    assert r.status_code == 200
    assert "Enterprise" in r.text

    r = await client.get("/")
    assert r.status_code == 200
    assert "Springfield" in r.text

    r = await client.get("/nonexistent")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_signup_login_logout(client):
    r = await client.post("/api/auth/signup", json={"email": "New@Example.com", "password": "longpassword"})
    assert r.status_code == 201
    token = r.json()["token"]

    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.json()["email"] == "new@example.com"

    r = await client.post("/api/auth/signup", json={"email": "new@example.com", "password": "longpassword"})
    assert r.status_code == 409

    r = await client.post("/api/auth/login", json={"email": "new@example.com", "password": "wrong-password"})
    assert r.status_code == 401

    r = await client.post("/api/auth/login", json={"email": "new@example.com", "password": "longpassword"})
    assert r.status_code == 200
    login_token = r.json()["token"]

    r = await client.post("/api/auth/logout", headers={"Authorization": f"Bearer {login_token}"})
    assert r.status_code == 200
    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {login_token}"})
    assert r.status_code == 401
