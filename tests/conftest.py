import json
from typing import Any, Callable, List, Optional, Tuple

import pytest

from trip_planner.ai.completion_client import CompletionOptions, CompletionResult
from trip_planner.core.config import Settings
from trip_planner.domain.services.planner_session import PlannerSession
from trip_planner.domain.storage import AddressBar, InMemoryStorage

BASE_URL = "http://localhost:8000/"

SAMPLE_ITINERARY = {
    "tripTitle": "Three Days in Lisbon",
    "tripRequirements": ["Book flights", "Check visa requirements"],
    "itinerary": [
        {
            "day": 1,
            "title": "Alfama Wanderings",
            "description": "Old town, viewpoints and fado.",
            "activities": [
                {
                    "time": "9:00 AM",
                    "description": "Ride tram 28 up to the castle.",
                    "icon": "🚋",
                    "tip": "Board early to get a seat.",
                    "estimatedCost": "€3",
                    "latitude": 38.7139,
                    "longitude": -9.1335,
                },
                {"time": "Evening", "description": "Fado dinner in Alfama.", "icon": "🎶"},
            ],
        },
        {
            "day": 2,
            "title": "Belém",
            "description": "Monuments by the river.",
            "activities": [{"time": "Morning", "description": "Jerónimos Monastery.", "icon": "⛪"}],
        },
    ],
    "suggestedCompanies": [
        {"name": "Lisbon Walker", "description": "Small walking tours.", "website": "lisbonwalker.com"},
    ],
}

SAMPLE_ATTRACTIONS = [
    {"name": "Belém Tower", "description": "Riverside fortress.", "category": "Landmarks & Monuments"},
    {"name": "MAAT", "description": "Art and technology museum.", "category": "Museums & Galleries"},
    {"name": "LX Factory", "description": "Creative hub with shops.", "category": "Shopping & Markets"},
]


def fenced(payload: Any) -> str:
    return f"Here is your plan!\n```json\n{json.dumps(payload, ensure_ascii=False)}\n```\nEnjoy your trip."


class ScriptedCompletionClient:
    """Returns queued responses in order; an Exception entry is raised, a callable is awaited."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[Tuple[str, CompletionOptions]] = []
        self.api_keys: List[str] = []

    def factory(self, api_key: str) -> "ScriptedCompletionClient":
        self.api_keys.append(api_key)
        return self

    async def complete(self, prompt: str, options: CompletionOptions) -> CompletionResult:
        self.calls.append((prompt, options))
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            response = await response()
        return CompletionResult(text=response)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def address_bar() -> AddressBar:
    return AddressBar(BASE_URL)


@pytest.fixture
def fake_client() -> ScriptedCompletionClient:
    return ScriptedCompletionClient()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(request_timeout_seconds=5.0, default_locale="en")


@pytest.fixture
def make_session(storage, address_bar, fake_client, test_settings) -> Callable[..., PlannerSession]:
    def _make(api_key: Optional[str] = "test-key") -> PlannerSession:
        if api_key:
            storage.set("gemini-api-key", api_key)
        return PlannerSession(storage, address_bar, client_factory=fake_client.factory, config=test_settings)

    return _make

