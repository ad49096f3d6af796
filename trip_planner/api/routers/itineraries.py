from fastapi import APIRouter, Depends, Query, Response, status

from trip_planner.api.models.schemas import (
    ItineraryData,
    ItineraryFormInputs,
    SaveItineraryResponse,
    SessionSnapshot,
)
from trip_planner.core.errors import ConflictError, NotFoundError, StorageError, ValidationError
from trip_planner.dependencies import get_planner_session
from trip_planner.domain.failures import NotFound, StorageCorrupt, ValidationFailure
from trip_planner.domain.itinerary_store import SHARE_QUERY_PARAM
from trip_planner.domain.services.planner_session import NOT_FOUND_MESSAGES, PlannerSession

router = APIRouter(prefix="/itineraries", tags=["itineraries"])


@router.post("/generate", response_model=SessionSnapshot)
async def generate_itinerary(
    body: ItineraryFormInputs,
    response: Response,
    session: PlannerSession = Depends(get_planner_session),
):
    if session.itinerary.is_loading:
        raise ConflictError("An itinerary is already being generated")
    await session.generate(body)
    if session.gate.credential_requested and session.gate.has_pending:
        response.status_code = status.HTTP_202_ACCEPTED
    return session.snapshot()


@router.post("/save", response_model=SaveItineraryResponse)
async def save_itinerary(session: PlannerSession = Depends(get_planner_session)):
    try:
        saved, share_url = session.save()
    except ValidationFailure as exc:
        raise ValidationError(str(exc))
    except StorageCorrupt as exc:
        raise StorageError(session.t("itinerarySaveError"), {"reason": str(exc)})
    return SaveItineraryResponse(itinerary=saved, shareUrl=share_url, message=session.t("itinerarySaveSuccess"))


@router.post("/new", response_model=SessionSnapshot)
async def new_itinerary(session: PlannerSession = Depends(get_planner_session)):
    session.new_plan()
    return session.snapshot()


@router.get("/shared", response_model=SessionSnapshot)
async def open_shared_itinerary(
    itinerary_id: str = Query(alias=SHARE_QUERY_PARAM, min_length=1),
    session: PlannerSession = Depends(get_planner_session),
):
    session.open_shared(itinerary_id)
    return session.snapshot()


@router.get("/{itinerary_id}", response_model=ItineraryData)
async def get_itinerary(itinerary_id: str, session: PlannerSession = Depends(get_planner_session)):
    try:
        return session.store.load(itinerary_id)
    except NotFound as exc:
        raise NotFoundError(session.t(NOT_FOUND_MESSAGES[exc.reason]), {"reason": exc.reason})
