"""Staff-assistant prompts: duplicates, reply drafts, reports, survey questions."""

DUPLICATE_PROMPT = """New report: "{text}".
Existing reports nearby: {candidates}.
Does the new report describe the same issue as one of the existing reports (a semantic duplicate)?
Respond as JSON only: {{"is_duplicate": true, "duplicate_id": "<id of the matching report or null>"}}"""

DRAFT_RESPONSE_PROMPT = """You are a polite and professional city official.
Write a short email response to a resident regarding the following issue.
Status: {status}.
Issue category: {category}.
Issue content: "{content}".
Resident sentiment: {sentiment}.

Tone: empathetic, reassuring and professional.
If status is 'resolved', thank them. If 'received', say it is being reviewed.
Keep it under 100 words."""

EXECUTIVE_REPORT_PROMPT = """You are an expert urban planning analyst.
Generate a concise executive summary (max 150 words) based on the following citizen feedback data.
Highlight key trends, urgent risks and opportunities for sustainability.

Data:
{context}"""

SURVEY_PROMPT = """Generate 5 engaging, short and relevant feedback questions for a public engagement platform.
Organization: {organization_name}. Focus: {focus_area}.
Respond as JSON only: {{"questions": ["...", "...", "...", "...", "..."]}}"""
