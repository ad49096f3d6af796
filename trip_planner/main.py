import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trip_planner.api.models.schemas import SessionSnapshot
from trip_planner.api.routers import attractions, credential, itineraries, meta
from trip_planner.core.config import settings
from trip_planner.core.errors import APIError, error_content
from trip_planner.core.logging import setup_logging
from trip_planner.dependencies import get_planner_session
from trip_planner.domain.failures import StorageCorrupt
from trip_planner.domain.services.planner_session import PlannerSession

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # rehydrate a shared itinerary when the configured address already carries one
    get_planner_session().restore()
    yield


app = FastAPI(title=settings.project_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(itineraries.router, prefix=settings.api_v1_prefix)
app.include_router(attractions.router, prefix=settings.api_v1_prefix)
app.include_router(credential.router, prefix=settings.api_v1_prefix)
app.include_router(meta.router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get(f"{settings.api_v1_prefix}/session", response_model=SessionSnapshot)
async def get_session(session: PlannerSession = Depends(get_planner_session)):
    return session.snapshot()


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if isinstance(exc, APIError):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_content(exc.code, str(exc.detail), exc.details),
        )
    code = "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "VALIDATION_ERROR" if 400 <= exc.status_code < 500 else "INTERNAL_ERROR"
    return JSONResponse(status_code=exc.status_code, content=error_content(code, str(exc.detail)))


@app.exception_handler(StorageCorrupt)
async def storage_corrupt_handler(request: Request, exc: StorageCorrupt):
    logger.error("Local storage is unreadable: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content("STORAGE_CORRUPT", "Local storage could not be read.", {"reason": str(exc)}),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    first_error = exc.errors()[0] if exc.errors() else {}
    loc = first_error.get("loc", [])
    path = ".".join(str(item) for item in loc if item not in ("body", "query"))
    details = {"field": path, "reason": first_error.get("msg")}
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_content("VALIDATION_ERROR", "The request is invalid.", details),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_content("INTERNAL_ERROR", "Something went wrong on our side."),
    )
