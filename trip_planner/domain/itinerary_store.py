from __future__ import annotations

import json
import logging
from typing import Dict, Optional
from urllib.parse import urlencode
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from trip_planner.api.models.schemas import ItineraryData
from trip_planner.domain.failures import NotFound, StorageCorrupt
from trip_planner.domain.storage import AddressBar, KeyValueStorage

logger = logging.getLogger(__name__)

ITINERARIES_STORAGE_KEY = "ai-travel-planner-itineraries"
SHARE_QUERY_PARAM = "itineraryId"


def generate_itinerary_id() -> str:
    # hex is URL-safe; no collision check against existing ids
    return uuid4().hex[:12]


def share_url(base_url: str, itinerary_id: str) -> str:
    return f"{base_url}?{urlencode({SHARE_QUERY_PARAM: itinerary_id})}"


class ItineraryStore:
    """Saved itineraries as one JSON mapping of id -> itinerary in local storage."""

    def __init__(self, storage: KeyValueStorage, address_bar: AddressBar):
        self.storage = storage
        self.address_bar = address_bar

    def save(self, data: ItineraryData) -> ItineraryData:
        itineraries = self._read_for_write()
        saved = data.model_copy(update={"id": data.id or generate_itinerary_id()}, deep=True)
        itineraries[saved.id] = saved.model_dump(mode="json")
        self.storage.set(ITINERARIES_STORAGE_KEY, json.dumps(itineraries, ensure_ascii=False))
        self.address_bar.push_query(SHARE_QUERY_PARAM, saved.id)
        logger.info("Saved itinerary %s (%d stored)", saved.id, len(itineraries))
        return saved

    def load(self, itinerary_id: str) -> ItineraryData:
        try:
            raw = self.storage.get(ITINERARIES_STORAGE_KEY)
        except StorageCorrupt as exc:
            raise NotFound(itinerary_id, "storage_corrupt") from exc
        if not raw:
            raise NotFound(itinerary_id, "no_saved_plans")
        try:
            itineraries = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Saved itineraries are not valid JSON: %s", exc)
            raise NotFound(itinerary_id, "storage_corrupt") from exc
        if not isinstance(itineraries, dict):
            logger.error("Saved itineraries are not a mapping (got %s)", type(itineraries).__name__)
            raise NotFound(itinerary_id, "storage_corrupt")
        if not itineraries:
            raise NotFound(itinerary_id, "no_saved_plans")
        entry = itineraries.get(itinerary_id)
        if entry is None:
            raise NotFound(itinerary_id, "id_not_found")
        try:
            return ItineraryData.model_validate(entry)
        except PydanticValidationError as exc:
            logger.error("Saved itinerary %s does not match the itinerary shape: %s", itinerary_id, exc)
            raise NotFound(itinerary_id, "storage_corrupt") from exc

    def share_token(self, data: ItineraryData) -> Optional[str]:
        if not data.id:
            return None
        return share_url(self.address_bar.base_url, data.id)

    def restore_from_location(self) -> Optional[ItineraryData]:
        """Rehydrate the itinerary named by the share parameter of the current address, if any."""
        itinerary_id = self.address_bar.query_param(SHARE_QUERY_PARAM)
        if not itinerary_id:
            return None
        try:
            return self.load(itinerary_id)
        except NotFound:
            self.address_bar.clear_query()
            raise

    def _read_for_write(self) -> Dict[str, dict]:
        raw = self.storage.get(ITINERARIES_STORAGE_KEY)
        if not raw:
            return {}
        try:
            itineraries = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageCorrupt("Saved itineraries are not valid JSON") from exc
        if not isinstance(itineraries, dict):
            raise StorageCorrupt("Saved itineraries are not a mapping")
        return itineraries
