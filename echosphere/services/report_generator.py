"""Staff reporting: dashboard statistics, CSV export, HTML and AI executive reports."""

from __future__ import annotations

import csv
import io
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader
from sqlalchemy.ext.asyncio import AsyncSession

from echosphere.db import crud
from echosphere.models import Feedback, Organization

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)

CSV_HEADERS = [
    "ID", "Timestamp", "Category", "Sentiment", "Status", "Content",
    "Eco Score", "Risk Score", "Votes",
]


def dashboard_stats(items: list[Feedback]) -> dict[str, Any]:
    """Aggregate counts and averages shown on the staff dashboard."""
    total = len(items)
    categories = Counter(f.category for f in items)
    sentiments = Counter(f.sentiment for f in items)
    statuses = Counter(f.status for f in items)
    return {
        "total": total,
        "categories": dict(categories.most_common()),
        "sentiments": dict(sentiments),
        "statuses": dict(statuses),
        "avg_eco_score": round(sum(f.eco_impact_score or 0 for f in items) / total) if total else 0,
        "avg_risk_score": round(sum(f.risk_score or 0 for f in items) / total) if total else 0,
        "high_risk": sum(1 for f in items if (f.risk_score or 0) >= 70),
    }


def export_csv(items: list[Feedback]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADERS)
    for f in items:
        writer.writerow([
            f.id,
            f.timestamp.isoformat() if f.timestamp else "",
            f.category,
            f.sentiment,
            f.status,
            f.content,
            f.eco_impact_score or 0,
            f.risk_score or 0,
            f.votes or 0,
        ])
    return buf.getvalue()


def report_lines(items: list[Feedback]) -> list[str]:
    """One line per report, the context fed to the executive summary prompt."""
    return [f"- [{f.category}] {f.content} (status: {f.status}, risk: {f.risk_score})" for f in items]


def csv_filename() -> str:
    return f"echosphere_report_{datetime.now(timezone.utc).date().isoformat()}.csv"


async def generate_html_report(db: AsyncSession, org: Organization) -> str:
    """Render the printable dashboard report for an organization."""
    items = await crud.list_all_feedback(db, org.id)
    template = _env.get_template("report.html.j2")
    return template.render(
        organization=org,
        stats=dashboard_stats(items),
        feedback=items[:100],
        generated_at=datetime.now(timezone.utc),
    )
