from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------- Itinerary ----------


class Activity(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    time: str
    description: str
    icon: str
    tip: Optional[str] = None
    estimatedCost: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _coordinates_come_in_pairs(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lat, lng = data.get("latitude"), data.get("longitude")
        if _is_coordinate(lat) and _is_coordinate(lng):
            return data
        cleaned = dict(data)
        cleaned["latitude"] = None
        cleaned["longitude"] = None
        return cleaned

    @property
    def map_link(self) -> Optional[str]:
        if self.latitude is None or self.longitude is None:
            return None
        return f"https://www.google.com/maps?q={self.latitude},{self.longitude}"


def _is_coordinate(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class DailyPlan(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    day: int
    title: str
    description: str
    activities: List[Activity]


class SuggestedCompany(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str
    description: str
    website: str

    @property
    def website_url(self) -> str:
        if self.website.startswith(("http://", "https://")):
            return self.website
        return f"https://{self.website}"


class ItineraryData(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: Optional[str] = None
    tripTitle: str
    itinerary: List[DailyPlan]
    suggestedCompanies: Optional[List[SuggestedCompany]] = None
    tripRequirements: Optional[List[str]] = None


# ---------- Attractions ----------


ATTRACTION_CATEGORIES: List[str] = [
    "Landmarks & Monuments",
    "Museums & Galleries",
    "Nature & Parks",
    "Shopping & Markets",
    "Entertainment",
]
UNCATEGORIZED = "Other"


class Attraction(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str
    description: str
    category: str


def group_attractions(attractions: List[Attraction]) -> Dict[str, List[Attraction]]:
    """
    Group attractions by category in taxonomy order. Unknown categories keep their
    own label and follow the known ones in first-seen order.
    """
    grouped: Dict[str, List[Attraction]] = {}
    for attraction in attractions:
        grouped.setdefault(attraction.category or UNCATEGORIZED, []).append(attraction)

    def _rank(category: str) -> int:
        try:
            return ATTRACTION_CATEGORIES.index(category)
        except ValueError:
            return len(ATTRACTION_CATEGORIES)

    # sorted() is stable, so unknown categories stay in insertion order
    return {category: grouped[category] for category in sorted(grouped, key=_rank)}


# ---------- Form inputs ----------


class ItineraryFormInputs(BaseModel):
    destination: str
    duration: str
    interests: str = ""
    activityLevel: str = "Moderate"
    tripStyle: str = "Solo"
    budget: str = "Mid-range"
    origin: Optional[str] = None


def split_interests(interests: str) -> List[str]:
    return [item.strip() for item in interests.split(",") if item.strip()]


def toggle_interest(interests: str, name: str) -> str:
    """Add or remove an attraction name in a comma separated interest list."""
    current = split_interests(interests)
    if name in current:
        current.remove(name)
    else:
        current.append(name)
    return ", ".join(current)


# ---------- Session state ----------


ErrorKind = Literal["auth", "parse", "network", "validation", "unknown"]
Phase = Literal["idle", "loading", "success", "failure"]
GateState = Literal["idle", "awaiting_credential"]


class ErrorInfo(BaseModel):
    kind: ErrorKind
    userMessage: str


class ItineraryStateView(BaseModel):
    phase: Phase
    itinerary: Optional[ItineraryData] = None
    error: Optional[ErrorInfo] = None
    shareUrl: Optional[str] = None
    saveError: Optional[ErrorInfo] = None


class AttractionsStateView(BaseModel):
    phase: Phase
    attractions: List[Attraction] = Field(default_factory=list)
    grouped: Dict[str, List[Attraction]] = Field(default_factory=dict)
    error: Optional[ErrorInfo] = None


class SessionSnapshot(BaseModel):
    gate: GateState
    credentialRequested: bool
    hasCredential: bool
    locale: str
    itinerary: ItineraryStateView
    attractions: AttractionsStateView


# ---------- Request/Response models ----------


class AttractionsRequest(BaseModel):
    destination: str


class CredentialRequest(BaseModel):
    apiKey: str


class SaveItineraryResponse(BaseModel):
    itinerary: ItineraryData
    shareUrl: Optional[str] = None
    message: str


class LocaleRequest(BaseModel):
    locale: Literal["en", "ar"]


class LocaleResponse(BaseModel):
    locale: str
