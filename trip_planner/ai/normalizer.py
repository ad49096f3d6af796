from __future__ import annotations

import json
import re
from typing import Callable, List, Literal, Optional, Tuple, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from trip_planner.api.models.schemas import Attraction, ItineraryData
from trip_planner.domain.failures import EmptyResponse, MalformedPayload

PayloadKind = Literal["itinerary", "attractions"]

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_ATTRACTIONS_ADAPTER = TypeAdapter(List[Attraction])

ExtractionStrategy = Callable[[str], Optional[str]]


def extract_fenced_block(text: str) -> Optional[str]:
    match = _FENCE_RE.search(text)
    if match and match.group(1):
        return match.group(1)
    return None


def extract_bracketed_span(text: str) -> Optional[str]:
    """
    Take everything from the first opening bracket to the last closing one.
    Balance is not checked; surrounding prose is the only thing tolerated.
    """
    starts = [idx for idx in (text.find("{"), text.find("[")) if idx != -1]
    if not starts:
        return None
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end <= start:
        return None
    return text[start : end + 1]


EXTRACTION_STRATEGIES: Tuple[ExtractionStrategy, ...] = (extract_fenced_block, extract_bracketed_span)


def extract_candidate(text: str, strategies: Tuple[ExtractionStrategy, ...] = EXTRACTION_STRATEGIES) -> str:
    for strategy in strategies:
        candidate = strategy(text)
        if candidate is not None:
            return candidate
    return text


def normalize(raw_text: Optional[str], kind: PayloadKind) -> Union[ItineraryData, List[Attraction]]:
    """
    Turn a free-text completion into a validated itinerary or attraction list.

    Raises EmptyResponse for blank output and MalformedPayload when nothing
    parseable of the expected shape can be recovered.
    """
    trimmed = (raw_text or "").strip()
    if not trimmed:
        raise EmptyResponse()

    candidate = extract_candidate(trimmed)
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedPayload(candidate, raw_text or "", reason=str(exc)) from exc

    try:
        if kind == "itinerary":
            return ItineraryData.model_validate(payload)
        return _dedupe_attractions(_ATTRACTIONS_ADAPTER.validate_python(_unwrap_list(payload)))
    except PydanticValidationError as exc:
        raise MalformedPayload(candidate, raw_text or "", reason=_summarize_errors(exc)) from exc


def _unwrap_list(payload):
    # {"attractions": [...]} style wrappers around a single array
    if isinstance(payload, dict) and len(payload) == 1:
        (value,) = payload.values()
        if isinstance(value, list):
            return value
    return payload


def _dedupe_attractions(attractions: List[Attraction]) -> List[Attraction]:
    seen: set[str] = set()
    unique: List[Attraction] = []
    for attraction in attractions:
        if attraction.name in seen:
            continue
        seen.add(attraction.name)
        unique.append(attraction)
    return unique


def _summarize_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors()[:3]:
        loc = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{loc or '<root>'}: {error.get('msg')}")
    return "; ".join(parts)
