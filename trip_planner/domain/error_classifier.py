"""
First-match classification of failures into user-facing error kinds.

Classification inspects error text as well as type so it still works when a
failure crosses a service boundary as a plain string.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Pattern, Tuple, Union

import httpx

from trip_planner.api.models.schemas import ErrorInfo
from trip_planner.domain.failures import AuthFailure, NetworkFailure, ParseFailure, ValidationFailure

AUTH_SIGNALS = (
    "api key",
    "api_key",
    "apikey",
    "permission",
    "authentication",
    "unauthenticated",
    "unauthorized",
)
AUTH_STATUS = re.compile(r"\b40[13]\b")
NETWORK_SIGNALS = ("network", "timeout", "timed out", "connection", "unavailable")
NETWORK_STATUS = re.compile(r"\b50[23]\b")
NETWORK_ERRORS = (NetworkFailure, httpx.HTTPError, ConnectionError, TimeoutError)

Translate = Callable[[str], str]


def _identity(key: str) -> str:
    return key


def _mentions(text: str, signals: Tuple[str, ...], status: Pattern[str]) -> bool:
    # status codes only count as whole numbers, not inside ports or ids
    return any(signal in text for signal in signals) or status.search(text) is not None


def classify(error: Union[BaseException, str], t: Optional[Translate] = None) -> ErrorInfo:
    t = t or _identity
    text = str(error).lower()

    if isinstance(error, ParseFailure):
        return ErrorInfo(kind="parse", userMessage=t("parseError"))
    if isinstance(error, AuthFailure) or _mentions(text, AUTH_SIGNALS, AUTH_STATUS):
        return ErrorInfo(kind="auth", userMessage=t("apiKeyModalError"))
    if isinstance(error, ValidationFailure):
        return ErrorInfo(kind="validation", userMessage=str(error))
    if isinstance(error, NETWORK_ERRORS) or _mentions(text, NETWORK_SIGNALS, NETWORK_STATUS):
        return ErrorInfo(kind="network", userMessage=t("networkError"))
    return ErrorInfo(kind="unknown", userMessage=t("unknownError"))
