"""Failure taxonomy shared by the normalizer, the store and the planner session."""

from __future__ import annotations

from typing import Literal, Optional


class PlannerFailure(Exception):
    """Base class for every failure the planner turns into a displayable state."""


class ParseFailure(PlannerFailure):
    pass


class EmptyResponse(ParseFailure):
    def __init__(self, message: str = "The AI returned an empty response."):
        super().__init__(message)


class MalformedPayload(ParseFailure):
    """Model output that could not be parsed or shaped; keeps both texts for diagnostics."""

    def __init__(self, candidate: str, raw_text: str, reason: Optional[str] = None):
        super().__init__("The AI returned data in an unexpected format.")
        self.candidate = candidate
        self.raw_text = raw_text
        self.reason = reason


class AuthFailure(PlannerFailure):
    pass


class ValidationFailure(PlannerFailure):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NetworkFailure(PlannerFailure):
    pass


NotFoundReason = Literal["no_saved_plans", "id_not_found", "storage_corrupt"]


class NotFound(PlannerFailure):
    def __init__(self, itinerary_id: str, reason: NotFoundReason):
        super().__init__(f"Itinerary {itinerary_id!r} not found ({reason})")
        self.itinerary_id = itinerary_id
        self.reason = reason


class StorageCorrupt(PlannerFailure):
    pass
