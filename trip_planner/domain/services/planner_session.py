from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from trip_planner.ai.completion_client import (
    WEB_SEARCH_TOOL,
    CompletionClientFactory,
    CompletionOptions,
    get_completion_client,
)
from trip_planner.ai.generation_graph import run_generation
from trip_planner.ai.prompts import ATTRACTIONS_SCHEMA, build_attractions_prompt, build_itinerary_prompt
from trip_planner.api.models.schemas import (
    ATTRACTION_CATEGORIES,
    Attraction,
    AttractionsStateView,
    ErrorInfo,
    ItineraryData,
    ItineraryFormInputs,
    ItineraryStateView,
    SessionSnapshot,
    group_attractions,
)
from trip_planner.core.config import Settings, settings
from trip_planner.domain.credential_gate import CredentialGate
from trip_planner.domain.error_classifier import classify
from trip_planner.domain.failures import NotFound, StorageCorrupt, ValidationFailure
from trip_planner.domain.itinerary_store import ItineraryStore, share_url
from trip_planner.domain.models import Failure, Idle, RequestSlot, RequestState, Success
from trip_planner.domain.storage import AddressBar, KeyValueStorage
from trip_planner.domain.translations import Translator

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGES = {
    "no_saved_plans": "itineraryNoSavedPlans",
    "id_not_found": "itineraryNotFoundError",
    "storage_corrupt": "itineraryLoadError",
}


class PlannerSession:
    """
    The planner's single user session: credential gate, saved itineraries and the
    two independent request flows (itinerary generation and attraction lookup).
    One instance lives for the whole process.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        address_bar: AddressBar,
        client_factory: Optional[CompletionClientFactory] = None,
        config: Settings = settings,
    ):
        self.config = config
        self.address_bar = address_bar
        self.gate = CredentialGate(storage)
        self.store = ItineraryStore(storage, address_bar)
        self.translator = Translator(storage, config.default_locale)
        self.client_factory = client_factory or (lambda api_key: get_completion_client(api_key, config))
        self.itinerary: RequestSlot[ItineraryData] = RequestSlot("itinerary")
        self.attractions: RequestSlot[List[Attraction]] = RequestSlot("attractions")
        # last failed save of the displayed itinerary; cleared when the itinerary changes
        self.save_error: Optional[ErrorInfo] = None

    def t(self, key: str) -> str:
        return self.translator.t(key)

    # ---------- itinerary generation ----------

    async def generate(self, form: ItineraryFormInputs) -> RequestState:
        try:
            duration = self._validate_form(form)
        except ValidationFailure as exc:
            logger.info("Rejected itinerary request: %s", exc)
            self.itinerary.set(Failure(classify(exc, self.t)))
            return self.itinerary.state

        await self.gate.run(lambda: self._generate_itinerary(form, duration))
        return self.itinerary.state

    def _validate_form(self, form: ItineraryFormInputs) -> int:
        if not form.destination.strip():
            raise ValidationFailure(self.t("destinationValidationError"), field="destination")
        try:
            duration = int(form.duration.strip())
        except ValueError:
            duration = 0
        if duration <= 0:
            raise ValidationFailure(self.t("durationValidationError"), field="duration")
        return duration

    async def _generate_itinerary(self, form: ItineraryFormInputs, duration: int) -> None:
        request_id = self.itinerary.begin()
        self.save_error = None
        # a fresh result is not shareable until it is saved
        self.address_bar.clear_query()
        locale = self.translator.locale
        logger.info("Generating %d-day itinerary for %s (locale=%s)", duration, form.destination, locale)
        prompt = build_itinerary_prompt(
            destination=form.destination.strip(),
            duration=duration,
            interests=form.interests,
            activity_level=form.activityLevel,
            trip_style=form.tripStyle,
            budget=form.budget,
            origin=form.origin,
            locale=locale,
        )
        try:
            client = self.client_factory(self.gate.credential or "")
            data = await run_generation(
                client,
                prompt,
                CompletionOptions(tools=[WEB_SEARCH_TOOL]),
                "itinerary",
                self.config.request_timeout_seconds,
            )
        except Exception as exc:
            info = self._handle_failure(exc, "itinerary generation")
            self.itinerary.settle(request_id, Failure(info))
            return
        self.itinerary.settle(request_id, Success(data))

    # ---------- attraction lookup ----------

    async def fetch_attractions(self, destination: str) -> RequestState:
        destination = destination.strip()
        if not destination:
            return self.attractions.state
        await self.gate.run(lambda: self._fetch_attractions(destination))
        return self.attractions.state

    async def _fetch_attractions(self, destination: str) -> None:
        request_id = self.attractions.begin()
        prompt = build_attractions_prompt(destination, self.translator.locale, ATTRACTION_CATEGORIES)
        try:
            client = self.client_factory(self.gate.credential or "")
            attractions = await run_generation(
                client,
                prompt,
                CompletionOptions(structured_output_schema=ATTRACTIONS_SCHEMA),
                "attractions",
                self.config.request_timeout_seconds,
            )
        except Exception as exc:
            info = self._handle_failure(exc, "attraction lookup")
            self.attractions.settle(request_id, Failure(ErrorInfo(kind=info.kind, userMessage=self.t("attractionsError"))))
            return
        self.attractions.settle(request_id, Success(attractions))

    def _handle_failure(self, exc: BaseException, operation: str) -> ErrorInfo:
        info = classify(exc, self.t)
        logger.error("%s failed (%s): %s", operation, info.kind, exc)
        if info.kind == "auth":
            self.gate.invalidate()
        return info

    # ---------- persistence and sharing ----------

    def save(self) -> Tuple[ItineraryData, Optional[str]]:
        """
        Persist the displayed itinerary and return it with its share URL.

        When the saved plans cannot be read, the displayed plan is kept, the
        translated save error is recorded for the snapshot and StorageCorrupt
        propagates.
        """
        state = self.itinerary.state
        if not isinstance(state, Success):
            raise ValidationFailure(self.t("nothingToSave"))
        try:
            saved = self.store.save(state.value)
        except StorageCorrupt as exc:
            logger.error("Could not save itinerary: %s", exc)
            self.save_error = ErrorInfo(kind="unknown", userMessage=self.t("itinerarySaveError"))
            raise
        self.save_error = None
        self.itinerary.set(Success(saved))
        return saved, self.store.share_token(saved)

    def new_plan(self) -> None:
        # saved itineraries stay in storage
        self.itinerary.set(Idle())
        self.save_error = None
        self.address_bar.clear_query()

    def restore(self) -> RequestState:
        """Rehydrate the itinerary named in the current address, as on page load."""
        self.save_error = None
        try:
            data = self.store.restore_from_location()
        except NotFound as exc:
            logger.warning("Could not restore shared itinerary: %s", exc)
            self.itinerary.set(Failure(ErrorInfo(kind="unknown", userMessage=self.t(NOT_FOUND_MESSAGES[exc.reason]))))
            return self.itinerary.state
        if data is not None:
            self.itinerary.set(Success(data))
        return self.itinerary.state

    def open_shared(self, itinerary_id: str) -> RequestState:
        self.address_bar.navigate(share_url(self.address_bar.base_url, itinerary_id))
        return self.restore()

    # ---------- views ----------

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            gate=self.gate.state.value,
            credentialRequested=self.gate.credential_requested,
            hasCredential=self.gate.credential is not None,
            locale=self.translator.locale,
            itinerary=self._itinerary_view(),
            attractions=self._attractions_view(),
        )

    def _itinerary_view(self) -> ItineraryStateView:
        state = self.itinerary.state
        if isinstance(state, Success):
            return ItineraryStateView(
                phase=state.phase,
                itinerary=state.value,
                shareUrl=self.store.share_token(state.value),
                saveError=self.save_error,
            )
        if isinstance(state, Failure):
            return ItineraryStateView(phase=state.phase, error=state.error)
        return ItineraryStateView(phase=state.phase)

    def _attractions_view(self) -> AttractionsStateView:
        state = self.attractions.state
        if isinstance(state, Success):
            return AttractionsStateView(phase=state.phase, attractions=state.value, grouped=group_attractions(state.value))
        if isinstance(state, Failure):
            return AttractionsStateView(phase=state.phase, error=state.error)
        return AttractionsStateView(phase=state.phase)
