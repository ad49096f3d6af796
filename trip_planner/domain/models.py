from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Generic, Iterator, Optional, TypeVar, Union

from trip_planner.api.models.schemas import ErrorInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Idle:
    phase: str = "idle"


@dataclass(frozen=True)
class Loading:
    request_id: int
    phase: str = "loading"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    phase: str = "success"


@dataclass(frozen=True)
class Failure:
    error: ErrorInfo
    phase: str = "failure"


RequestState = Union[Idle, Loading, Success, Failure]


@dataclass
class RequestSlot(Generic[T]):
    """
    State of one independent request flow (itinerary generation or attraction lookup).

    Every network phase gets a fresh request id; only the completion carrying the
    latest id may settle the slot, so a slow earlier response never overwrites a
    newer one.
    """

    name: str
    state: RequestState = field(default_factory=Idle)
    latest_request_id: Optional[int] = None
    _request_ids: Iterator[int] = field(
        default_factory=lambda: itertools.count(1), init=False, repr=False, compare=False
    )

    @property
    def is_loading(self) -> bool:
        return isinstance(self.state, Loading)

    def begin(self) -> int:
        request_id = next(self._request_ids)
        self.latest_request_id = request_id
        self.state = Loading(request_id=request_id)
        return request_id

    def settle(self, request_id: int, state: RequestState) -> bool:
        if request_id != self.latest_request_id:
            logger.info("Discarding stale %s result for request %s (latest is %s)", self.name, request_id, self.latest_request_id)
            return False
        self.state = state
        return True

    def set(self, state: RequestState) -> None:
        """Replace the state outside of a request; in-flight completions become stale."""
        self.latest_request_id = None
        self.state = state
