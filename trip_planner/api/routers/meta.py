from typing import Dict, List

from fastapi import APIRouter, Depends

from trip_planner.api.models.schemas import ATTRACTION_CATEGORIES, LocaleRequest, LocaleResponse
from trip_planner.dependencies import get_planner_session
from trip_planner.domain.services.planner_session import PlannerSession

router = APIRouter(prefix="/meta", tags=["meta"])


@router.get("/locale", response_model=LocaleResponse)
async def get_locale(session: PlannerSession = Depends(get_planner_session)):
    return LocaleResponse(locale=session.translator.locale)


@router.put("/locale", response_model=LocaleResponse)
async def set_locale(body: LocaleRequest, session: PlannerSession = Depends(get_planner_session)):
    session.translator.set_locale(body.locale)
    return LocaleResponse(locale=session.translator.locale)


@router.get("/translations")
async def list_translations(session: PlannerSession = Depends(get_planner_session)) -> Dict[str, str]:
    return session.translator.catalogue()


@router.get("/attraction-categories")
async def list_attraction_categories(session: PlannerSession = Depends(get_planner_session)) -> List[Dict[str, str]]:
    return [{"id": category, "name": session.t(f"category{category}")} for category in ATTRACTION_CATEGORIES]
