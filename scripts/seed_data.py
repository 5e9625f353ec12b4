"""Seed the database with the Demo City organization and a handful of reports."""

import asyncio

from echosphere.db.engine import create_all, async_session_factory
from echosphere.db import crud
from echosphere.services.provisioning import get_writable_organization, DEMO_ORGANIZATION, DEFAULT_CENTER

DEMO_REPORTS = [
    ("More trash cans needed.", "neutral", "Sanitation", "Need bins", 5, 60, "Reduces litter."),
    ("Dangerous pothole.", "negative", "Infrastructure", "Pothole fix", 12, 10, "Safety issue, neutral eco impact."),
    ("Love the mural!", "positive", "Culture", "Nice mural", 20, 40, "Cultural value."),
    ("Street lights are out on Main St.", "negative", "Safety", "Dark streets", 8, 20, "Safety priority."),
    ("Great new bike lane.", "positive", "Infrastructure", "Good bike lane", 15, 90, "Encourages low-carbon transport."),
    ("Bus schedule is unreliable.", "negative", "Transport", "Late buses", 3, 85, "Better transit reduces cars."),
]


async def seed():
    await create_all()

    async with async_session_factory() as db:
        org = await get_writable_organization(db, DEMO_ORGANIZATION.id)
        existing = await crud.list_feedback(db, org.id, limit=1)
        if existing:
            print("Demo City already has reports, skipping seed.")
            return

        for i, (content, sentiment, category, summary, votes, eco, reasoning) in enumerate(DEMO_REPORTS):
            # Spread the pins around the map center
            location = {
                "x": DEFAULT_CENTER["x"] + 0.01 * (i - 3),
                "y": DEFAULT_CENTER["y"] + 0.005 * ((i % 3) - 1),
            }
            await crud.create_feedback(
                db, org.id,
                location=location, content=content, sentiment=sentiment,
                category=category, summary=summary, votes=votes,
                eco_impact_score=eco, eco_impact_reasoning=reasoning,
                risk_score=70 if sentiment == "negative" else 10,
                author_name="Anonymous Citizen",
            )
        print(f"Created {org.name} (id: {org.id}) with {len(DEMO_REPORTS)} reports")

    print("\nSeed complete. Start the server with: uvicorn echosphere.main:app --reload")
    print("Open http://localhost:8000/?org=demo to begin.")


if __name__ == "__main__":
    asyncio.run(seed())
