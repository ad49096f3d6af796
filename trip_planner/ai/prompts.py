"""Prompt templates for itinerary generation and attraction lookup."""

from __future__ import annotations

from typing import Any, Dict

LANGUAGE_NAMES = {"en": "English", "ar": "Arabic"}

ITINERARY_PROMPT = """
You are an expert travel planner. Create a detailed, practical, and engaging travel itinerary.

**Primary Language for Response:** The entire JSON response, including all titles, descriptions, tips, and company details, MUST be in {language}.

**Trip Details:**
- Destination: {destination}
- Duration: {duration} days
- Interests: {interests}
- Trip Style: {trip_style}
- Budget: {budget}
- Activity Level: {activity_level}
{origin_line}
**Instructions:**
1.  **Generate a day-by-day itinerary.** For each activity, you MUST provide:
    - A suggested time (e.g., '9:00 AM' or 'Afternoon').
    - A detailed description.
    - A single, relevant emoji icon.
    - An optional "tip" with useful advice.
    - An optional "estimatedCost" (e.g., "$20", "Free").
    - The precise numerical "latitude" and "longitude" for the location.

2.  **Find REAL travel companies.** Use your search tool to find exactly 3 **real** travel agencies or tour operators that are a good fit for this specific trip (destination, budget, style). For each company, provide its actual name, a short description of what makes it a good fit, and its **real, official website URL**. Do not invent companies.

3.  **Create a Trip Preparation Checklist.** {requirements_instruction}

4.  **Format the entire output as a single, valid JSON object.** Do not include any text or markdown formatting before or after the JSON. The JSON object must have the following structure:
    {{
      "tripTitle": "A creative and catchy title for the trip.",
      "tripRequirements": ["Actionable tip 1", "Actionable tip 2"],
      "itinerary": [
        {{
          "day": 1,
          "title": "A short, engaging title for the day's plan.",
          "description": "A brief, one-sentence summary of the day's theme.",
          "activities": [
            {{
              "time": "string",
              "description": "string",
              "icon": "emoji",
              "tip": "string (optional)",
              "estimatedCost": "string (optional)",
              "latitude": number (optional),
              "longitude": number (optional)
            }}
          ]
        }}
      ],
      "suggestedCompanies": [
        {{
          "name": "Real Company Name",
          "description": "A brief description of the company.",
          "website": "https://www.realcompanywebsite.com"
        }}
      ]
    }}
"""

ORIGIN_REQUIREMENTS = (
    'Because the user is traveling from {origin}, create a "tripRequirements" list. This should be an array of '
    "short, actionable strings covering essential pre-travel tasks like visa checks, currency exchange, packing "
    "advice for the destination's climate, and flight booking reminders."
)
GENERIC_REQUIREMENTS = (
    'If no origin is provided, create a generic "tripRequirements" list with reminders to book flights and '
    "accommodation."
)

ATTRACTIONS_PROMPT = """
You are a travel expert. Provide a list of the top 10-12 tourist attractions for the destination: {destination}.
The entire response MUST be in {language}.
Categorize each attraction into one of the following exact categories: {categories}.
Provide a brief, one-sentence description for each attraction.
Return ONLY the JSON array.
"""

ATTRACTIONS_SCHEMA: Dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "name": {"type": "STRING"},
            "description": {"type": "STRING"},
            "category": {"type": "STRING"},
        },
        "required": ["name", "description", "category"],
    },
}


def build_itinerary_prompt(
    destination: str,
    duration: int,
    interests: str,
    activity_level: str,
    trip_style: str,
    budget: str,
    origin: str | None,
    locale: str,
) -> str:
    origin = (origin or "").strip() or None
    return ITINERARY_PROMPT.format(
        language=LANGUAGE_NAMES.get(locale, "English"),
        destination=destination,
        duration=duration,
        interests=interests,
        trip_style=trip_style,
        budget=budget,
        activity_level=activity_level,
        origin_line=f"- Origin: {origin}\n" if origin else "",
        requirements_instruction=ORIGIN_REQUIREMENTS.format(origin=origin) if origin else GENERIC_REQUIREMENTS,
    )


def build_attractions_prompt(destination: str, locale: str, categories: list[str]) -> str:
    return ATTRACTIONS_PROMPT.format(
        destination=destination,
        language=LANGUAGE_NAMES.get(locale, "English"),
        categories=", ".join(f'"{category}"' for category in categories),
    )
