import asyncio
import json

import pytest

from conftest import BASE_URL, SAMPLE_ATTRACTIONS, SAMPLE_ITINERARY, fenced
from trip_planner.ai.completion_client import WEB_SEARCH_TOOL
from trip_planner.api.models.schemas import Attraction, ItineraryFormInputs
from trip_planner.domain.credential_gate import API_KEY_STORAGE_KEY, GateState
from trip_planner.domain.failures import StorageCorrupt, ValidationFailure
from trip_planner.domain.itinerary_store import ITINERARIES_STORAGE_KEY
from trip_planner.domain.models import Failure, Idle, RequestSlot, Success
from trip_planner.domain.services.planner_session import PlannerSession
from trip_planner.domain.storage import FileStorage


def _form(**overrides):
    values = {"destination": "Lisbon", "duration": "3", "interests": "food, history"}
    values.update(overrides)
    return ItineraryFormInputs(**values)


async def test_generate_success(make_session, fake_client):
    fake_client.responses.append(fenced(SAMPLE_ITINERARY))
    session = make_session()

    state = await session.generate(_form(origin="Toronto"))

    assert isinstance(state, Success)
    assert state.value.tripTitle == "Three Days in Lisbon"
    assert state.value.id is None
    prompt, options = fake_client.calls[0]
    assert "Destination: Lisbon" in prompt
    assert "Duration: 3 days" in prompt
    assert "Origin: Toronto" in prompt
    assert options.tools == [WEB_SEARCH_TOOL]
    assert fake_client.api_keys == ["test-key"]


@pytest.mark.parametrize("duration", ["-3", "0", "three", "", "2.5", "3 days"])
async def test_invalid_duration_never_reaches_the_model(make_session, fake_client, duration):
    session = make_session()

    state = await session.generate(_form(duration=duration))

    assert isinstance(state, Failure)
    assert state.error.kind == "validation"
    assert state.error.userMessage == "Please enter a valid number of days."
    assert fake_client.calls == []


async def test_duration_allows_surrounding_whitespace(make_session, fake_client):
    fake_client.responses.append(fenced(SAMPLE_ITINERARY))
    session = make_session()

    state = await session.generate(_form(duration=" 4 "))

    assert isinstance(state, Success)
    prompt, _ = fake_client.calls[0]
    assert "Duration: 4 days" in prompt


async def test_invalid_duration_does_not_open_the_credential_prompt(make_session, fake_client):
    session = make_session(api_key=None)

    await session.generate(_form(duration="-3"))

    assert session.gate.state is GateState.IDLE
    assert not session.gate.has_pending


async def test_generation_waits_for_credential(make_session, fake_client, storage):
    fake_client.responses.append(fenced(SAMPLE_ITINERARY))
    session = make_session(api_key=None)

    state = await session.generate(_form())

    assert isinstance(state, Idle)
    assert session.gate.credential_requested
    assert fake_client.calls == []

    await session.gate.submit("fresh-key")

    assert isinstance(session.itinerary.state, Success)
    assert fake_client.api_keys == ["fresh-key"]
    assert storage.get(API_KEY_STORAGE_KEY) == "fresh-key"


async def test_only_latest_gated_request_runs(make_session, fake_client):
    fake_client.responses.append(json.dumps(SAMPLE_ATTRACTIONS))
    session = make_session(api_key=None)

    await session.generate(_form())
    await session.fetch_attractions("Lisbon")
    await session.gate.submit("key")

    assert len(fake_client.calls) == 1
    assert isinstance(session.attractions.state, Success)
    assert isinstance(session.itinerary.state, Idle)


async def test_auth_failure_clears_credential_without_replay(make_session, fake_client, storage):
    fake_client.responses.append(Exception("Invalid authentication credentials"))
    session = make_session()

    state = await session.generate(_form())

    assert isinstance(state, Failure)
    assert state.error.kind == "auth"
    assert storage.get(API_KEY_STORAGE_KEY) is None
    assert session.gate.credential_requested
    assert len(fake_client.calls) == 1

    fake_client.responses.append(fenced(SAMPLE_ITINERARY))
    await session.generate(_form())
    assert len(fake_client.calls) == 1
    await session.gate.submit("new-key")
    assert isinstance(session.itinerary.state, Success)


async def test_malformed_output_is_a_parse_failure(make_session, fake_client):
    fake_client.responses.append("Sorry, I can only answer in prose today.")
    session = make_session()

    state = await session.generate(_form())

    assert state.error.kind == "parse"
    assert state.error.userMessage.startswith("The AI returned data")


async def test_empty_output_is_a_parse_failure(make_session, fake_client, storage):
    fake_client.responses.append("   ")
    session = make_session()

    state = await session.generate(_form())

    assert state.error.kind == "parse"
    assert storage.get(API_KEY_STORAGE_KEY) == "test-key"


async def test_hung_model_call_times_out(make_session, fake_client, test_settings):
    test_settings.request_timeout_seconds = 0.05

    async def never_answers():
        await asyncio.sleep(10)
        return "{}"

    fake_client.responses.append(never_answers)
    session = make_session()

    state = await session.generate(_form())

    assert isinstance(state, Failure)
    assert state.error.kind == "network"


async def test_stale_completion_does_not_overwrite_newer_result(make_session, fake_client):
    release_first = asyncio.Event()
    first = dict(SAMPLE_ITINERARY, tripTitle="First request")
    second = dict(SAMPLE_ITINERARY, tripTitle="Second request")

    async def slow_first():
        await release_first.wait()
        return fenced(first)

    fake_client.responses.extend([slow_first, fenced(second)])
    session = make_session()

    slow_task = asyncio.create_task(session.generate(_form()))
    await asyncio.sleep(0)
    while not fake_client.calls:
        await asyncio.sleep(0)
    await session.generate(_form())
    release_first.set()
    await slow_task

    assert session.itinerary.state.value.tripTitle == "Second request"


async def test_generation_clears_previous_share_link(make_session, fake_client, address_bar):
    fake_client.responses.extend([fenced(SAMPLE_ITINERARY), fenced(SAMPLE_ITINERARY)])
    session = make_session()
    await session.generate(_form())
    saved, _ = session.save()
    assert address_bar.query_param("itineraryId") == saved.id

    await session.generate(_form())

    assert address_bar.url == BASE_URL
    assert session.itinerary.state.value.id is None


async def test_attractions_are_independent_of_itinerary_state(make_session, fake_client):
    fake_client.responses.extend([fenced(SAMPLE_ITINERARY), Exception("network unreachable")])
    session = make_session()
    await session.generate(_form())

    state = await session.fetch_attractions("Lisbon")

    assert isinstance(state, Failure)
    assert state.error.kind == "network"
    assert state.error.userMessage == "Could not fetch attractions. Please try again."
    assert isinstance(session.itinerary.state, Success)
    _, options = fake_client.calls[1]
    assert options.structured_output_schema["type"] == "ARRAY"


async def test_blank_destination_skips_attraction_lookup(make_session, fake_client):
    session = make_session(api_key=None)
    state = await session.fetch_attractions("   ")
    assert isinstance(state, Idle)
    assert not session.gate.credential_requested


async def test_save_and_reopen_shared_link(make_session, fake_client, storage, address_bar):
    fake_client.responses.append(fenced(SAMPLE_ITINERARY))
    session = make_session()
    await session.generate(_form())

    saved, share_url = session.save()

    assert share_url == f"{BASE_URL}?itineraryId={saved.id}"
    assert session.itinerary.state.value.id == saved.id

    session.new_plan()
    assert isinstance(session.itinerary.state, Idle)
    assert address_bar.url == BASE_URL
    assert saved.id in json.loads(storage.get(ITINERARIES_STORAGE_KEY))

    state = session.open_shared(saved.id)
    assert isinstance(state, Success)
    assert state.value == saved


def test_save_without_itinerary_is_rejected(make_session):
    session = make_session()
    with pytest.raises(ValidationFailure):
        session.save()


async def test_save_over_corrupt_store_keeps_displayed_plan(make_session, fake_client, storage):
    fake_client.responses.append(fenced(SAMPLE_ITINERARY))
    session = make_session()
    await session.generate(_form())
    storage.set(ITINERARIES_STORAGE_KEY, "{broken")

    with pytest.raises(StorageCorrupt):
        session.save()

    assert isinstance(session.itinerary.state, Success)
    view = session.snapshot().itinerary
    assert view.phase == "success"
    assert view.saveError.userMessage == "Failed to save the itinerary."
    assert storage.get(ITINERARIES_STORAGE_KEY) == "{broken"

    session.new_plan()
    assert session.snapshot().itinerary.saveError is None


@pytest.mark.parametrize(
    "blob, expected",
    [
        (None, "No saved plans were found on this device."),
        (json.dumps({"other": SAMPLE_ITINERARY}), "The requested itinerary could not be found. It may have been saved on another device."),
        ("{broken", "Failed to load the saved itinerary."),
    ],
)
def test_restore_reports_distinct_not_found_messages(make_session, storage, address_bar, blob, expected):
    if blob is not None:
        storage.set(ITINERARIES_STORAGE_KEY, blob)
    address_bar.navigate(f"{BASE_URL}?itineraryId=missing")
    session = make_session()

    state = session.restore()

    assert isinstance(state, Failure)
    assert state.error.userMessage == expected
    assert address_bar.url == BASE_URL


def test_restore_without_share_link_stays_idle(make_session):
    assert isinstance(make_session().restore(), Idle)


async def test_prompt_follows_locale(make_session, fake_client):
    fake_client.responses.append(json.dumps(SAMPLE_ATTRACTIONS))
    session = make_session()
    session.translator.set_locale("ar")

    await session.fetch_attractions("Cairo")

    prompt, _ = fake_client.calls[0]
    assert "MUST be in Arabic" in prompt


def test_snapshot_groups_attractions(make_session):
    session = make_session()
    session.attractions.set(Success([Attraction.model_validate(item) for item in SAMPLE_ATTRACTIONS]))

    snapshot = session.snapshot()

    assert snapshot.attractions.phase == "success"
    assert list(snapshot.attractions.grouped) == ["Landmarks & Monuments", "Museums & Galleries", "Shopping & Markets"]
    assert snapshot.gate == "idle"
    assert snapshot.hasCredential
    assert snapshot.itinerary.phase == "idle"


async def test_open_shared_keeps_reserved_characters_in_the_id(make_session, fake_client, storage, address_bar):
    storage.set(
        ITINERARIES_STORAGE_KEY,
        json.dumps({"a": dict(SAMPLE_ITINERARY, tripTitle="Someone else"), "a&b": SAMPLE_ITINERARY}),
    )
    session = make_session()

    state = session.open_shared("a&b")

    assert isinstance(state, Success)
    assert state.value.id is None
    assert state.value.tripTitle == "Three Days in Lisbon"
    assert address_bar.url == f"{BASE_URL}?itineraryId=a%26b"


def test_request_ids_are_per_slot():
    itinerary, attractions = RequestSlot("itinerary"), RequestSlot("attractions")

    assert itinerary.begin() == 1
    assert itinerary.begin() == 2
    assert attractions.begin() == 1
    assert not itinerary.settle(1, Idle())
    assert itinerary.settle(2, Idle())


def test_unreadable_storage_file_degrades_reads(tmp_path, address_bar, fake_client, test_settings):
    path = tmp_path / "storage.json"
    path.write_text("{truncated", encoding="utf-8")
    address_bar.navigate(f"{BASE_URL}?itineraryId=abc")
    session = PlannerSession(FileStorage(path), address_bar, client_factory=fake_client.factory, config=test_settings)

    state = session.restore()
    snapshot = session.snapshot()

    assert isinstance(state, Failure)
    assert state.error.userMessage == "Failed to load the saved itinerary."
    assert snapshot.hasCredential is False
    assert snapshot.locale == "en"
    with pytest.raises(StorageCorrupt):
        session.translator.set_locale("ar")
    assert path.read_text(encoding="utf-8") == "{truncated"
