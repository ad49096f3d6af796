from fastapi import APIRouter, Depends, Response, status

from trip_planner.api.models.schemas import AttractionsRequest, SessionSnapshot
from trip_planner.core.errors import ConflictError
from trip_planner.dependencies import get_planner_session
from trip_planner.domain.services.planner_session import PlannerSession

router = APIRouter(prefix="/attractions", tags=["attractions"])


@router.post("", response_model=SessionSnapshot)
async def fetch_attractions(
    body: AttractionsRequest,
    response: Response,
    session: PlannerSession = Depends(get_planner_session),
):
    if session.attractions.is_loading:
        raise ConflictError("Attractions are already being fetched")
    await session.fetch_attractions(body.destination)
    if session.gate.credential_requested and session.gate.has_pending:
        response.status_code = status.HTTP_202_ACCEPTED
    return session.snapshot()
