"""Static marketing and legal content rendered by the page routes."""

from __future__ import annotations

PAGES: dict[str, dict] = {
    "pricing": {
        "title": "Pricing",
        "body": ["Simple plans for cities of every size."],
        "plans": [
            {"id": "free", "name": "Starter", "price": "Free", "features": [
                "Up to 500 reports/mo", "Basic map view",
                "7-day data retention", "Community support",
            ]},
            {"id": "pro", "name": "Pro", "price": "$49/mo", "features": [
                "Unlimited reports", "AI sentiment analysis", "Export to CSV",
                "1-year data retention", "Priority support", "Custom branding",
            ]},
            {"id": "enterprise", "name": "Enterprise", "price": "Contact us", "features": [
                "Unlimited workspaces", "SSO & advanced security",
                "Unlimited data retention", "Dedicated success manager", "SLA guarantee",
            ]},
        ],
    },
    "about": {
        "title": "About EchoSphere",
        "body": [
            "EchoSphere is a platform for intelligent, geo-located civic feedback.",
            "Residents drop pins on a map and describe what needs attention. "
            "An AI classifier labels sentiment, category and urgency so municipal staff can triage quickly.",
        ],
    },
    "privacy": {
        "title": "Privacy Policy",
        "body": [
            "We collect location data associated with reports, the text and media you submit, "
            "and your email address if you create an account.",
            "Contact emails are encrypted at rest and only visible to staff of the organization you reported to.",
            "We do not sell your personal data. Aggregated, anonymized feedback is shared with "
            "partner municipalities to help them improve city services.",
        ],
    },
    "terms": {
        "title": "Terms of Service",
        "body": [
            "You agree not to submit false or misleading reports, harass or harm another person, "
            "or violate any applicable laws.",
            "You retain ownership of the content you submit and grant EchoSphere a non-exclusive "
            "license to display it in connection with the service.",
            "We may suspend access for violation of these terms.",
        ],
    },
}


def get_page(page_id: str) -> dict | None:
    return PAGES.get(page_id)
