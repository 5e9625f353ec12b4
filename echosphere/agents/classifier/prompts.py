"""Classification agent prompts."""

CLASSIFY_PROMPT = """Analyze the following public feedback for a city planning tool.
Output language: {language}.

Tasks:
1. Identify sentiment (positive/negative/neutral).
2. Categorize the topic (Infrastructure, Safety, Recreation, Traffic, Sanitation, Sustainability, Culture).
3. Provide a 5-10 word summary in {language}.
4. Assign a risk score (0-100, 100=urgent).
5. Assign an eco-impact score (0-100) assessing if this suggestion helps the environment.
6. Provide 1 sentence reasoning for the eco-impact in {language}.
7. CRITICAL: Determine if this is a VALID CIVIC ISSUE.
   - TRUE: potholes, broken lights, trash, safety hazards, traffic, parks, community ideas.
   - FALSE: commercial reviews, spam, personal ads, dating profiles, gibberish, general rants.
   If FALSE, give a short refusal_reason addressed to the resident.

Context: user selected category: "{category_hint}".
Feedback content: "{text}"

Respond as JSON only:
{{
  "sentiment": "negative",
  "category": "Infrastructure",
  "summary": "Deep pothole on Main Street near school",
  "risk_score": 70,
  "eco_impact_score": 20,
  "eco_impact_reasoning": "Repairing the road has little environmental effect.",
  "is_civic_issue": true,
  "refusal_reason": null
}}"""

IMAGE_ONLY_TEXT = "Analyze this image for urban planning issues."

DEFAULT_REFUSAL = "This platform is for city services and maintenance issues only."
