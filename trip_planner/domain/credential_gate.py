from __future__ import annotations

import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from trip_planner.domain.failures import StorageCorrupt, ValidationFailure
from trip_planner.domain.storage import KeyValueStorage

logger = logging.getLogger(__name__)

API_KEY_STORAGE_KEY = "gemini-api-key"

PendingAction = Callable[[], Union[Any, Awaitable[Any]]]


class GateState(str, Enum):
    IDLE = "idle"
    AWAITING_CREDENTIAL = "awaiting_credential"


class CredentialGate:
    """
    Runs credential-requiring actions only once an API credential is stored.

    Without a credential the action is parked in a single pending slot (a newer
    action replaces an older one) and a credential request is raised. Submitting
    a credential runs the parked action exactly once; cancelling drops it.
    """

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.state = GateState.IDLE
        self._pending: Optional[PendingAction] = None

    @property
    def credential(self) -> Optional[str]:
        try:
            return self.storage.get(API_KEY_STORAGE_KEY) or None
        except StorageCorrupt:
            logger.warning("Stored API credential is unreadable; treating it as missing")
            return None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def credential_requested(self) -> bool:
        return self.state is GateState.AWAITING_CREDENTIAL

    async def run(self, action: PendingAction) -> Any:
        if self.credential:
            return await _invoke(action)
        if self._pending is not None:
            logger.debug("Replacing pending credential-gated action")
        self._pending = action
        self.state = GateState.AWAITING_CREDENTIAL
        logger.info("Credential required; deferring action until one is supplied")
        return None

    async def submit(self, credential: str) -> Any:
        credential = (credential or "").strip()
        if not credential:
            raise ValidationFailure("Please enter your API key.", field="apiKey")
        self.storage.set(API_KEY_STORAGE_KEY, credential)
        self.state = GateState.IDLE
        action, self._pending = self._pending, None
        if action is None:
            return None
        return await _invoke(action)

    def cancel(self) -> None:
        if self._pending is not None:
            logger.debug("Credential request cancelled; dropping pending action")
        self._pending = None
        self.state = GateState.IDLE

    def invalidate(self) -> None:
        """Forget the stored credential after an authentication failure and re-open the prompt.

        The failed call is not replayed; the next gated action is what waits for the new key.
        """
        try:
            self.storage.remove(API_KEY_STORAGE_KEY)
        except StorageCorrupt as exc:
            logger.error("Could not clear the stored API credential: %s", exc)
        self.state = GateState.AWAITING_CREDENTIAL
        logger.warning("Stored API credential cleared after an authentication failure")


async def _invoke(action: PendingAction) -> Any:
    result = action()
    if inspect.isawaitable(result):
        return await result
    return result
