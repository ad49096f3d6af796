from fastapi import APIRouter, Depends

from trip_planner.api.models.schemas import CredentialRequest, SessionSnapshot
from trip_planner.core.errors import ValidationError
from trip_planner.dependencies import get_planner_session
from trip_planner.domain.failures import ValidationFailure
from trip_planner.domain.services.planner_session import PlannerSession

router = APIRouter(prefix="/credential", tags=["credential"])


@router.post("", response_model=SessionSnapshot)
async def submit_credential(body: CredentialRequest, session: PlannerSession = Depends(get_planner_session)):
    """Store the API key and run whichever action was waiting for it."""
    try:
        await session.gate.submit(body.apiKey)
    except ValidationFailure as exc:
        raise ValidationError(session.t("apiKeyRequired"), {"field": exc.field, "reason": str(exc)})
    return session.snapshot()


@router.delete("", response_model=SessionSnapshot)
async def cancel_credential_request(session: PlannerSession = Depends(get_planner_session)):
    session.gate.cancel()
    return session.snapshot()
