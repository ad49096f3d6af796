from trip_planner.core.config import settings
from trip_planner.domain.services.planner_session import PlannerSession
from trip_planner.domain.storage import AddressBar, FileStorage

_session = PlannerSession(
    storage=FileStorage(settings.storage_path),
    address_bar=AddressBar(settings.public_base_url, writable=settings.address_bar_writable),
)


def get_planner_session() -> PlannerSession:
    return _session


__all__ = [
    "get_planner_session",
    "settings",
]
