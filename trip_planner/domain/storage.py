from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from trip_planner.domain.failures import StorageCorrupt

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """
    String-to-string store with the semantics of a browser's local storage.

    Backends that cannot read their data raise ``StorageCorrupt`` instead of
    reporting missing keys.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryStorage(KeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._store: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store[key] = value

    def remove(self, key: str) -> None:
        self._store.pop(key, None)


class FileStorage(KeyValueStorage):
    """
    Local JSON file holding every key. Each write rewrites the whole file through
    a temporary file and an atomic rename, so a crash never leaves half a file.

    A file that exists but cannot be parsed raises ``StorageCorrupt`` on every
    access and is never rewritten.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def _read(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Storage file %s is not valid JSON: %s", self.path, exc)
            raise StorageCorrupt(f"Storage file {self.path} is not valid JSON") from exc
        if not isinstance(data, dict):
            logger.error("Storage file %s does not hold an object", self.path)
            raise StorageCorrupt(f"Storage file {self.path} does not hold an object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class AddressBar:
    """
    The page's addressable location. When it cannot be rewritten (read-only
    sandboxes, blob: URLs) pushes and clears are dropped and the app keeps
    sharing in memory only.
    """

    def __init__(self, url: str, writable: bool = True):
        self.url = url
        self.writable = writable

    @property
    def can_rewrite(self) -> bool:
        return self.writable and urlsplit(self.url).scheme != "blob"

    @property
    def base_url(self) -> str:
        parts = urlsplit(self.url)
        return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

    def query_param(self, name: str) -> Optional[str]:
        values = parse_qs(urlsplit(self.url).query).get(name)
        return values[0] if values else None

    def push_query(self, name: str, value: str) -> bool:
        if not self.can_rewrite:
            logger.debug("Address bar is read-only; keeping %s=%s in memory", name, value)
            return False
        self.url = f"{self.base_url}?{urlencode({name: value})}"
        return True

    def clear_query(self) -> bool:
        if not self.can_rewrite:
            logger.debug("Address bar is read-only; leaving %s untouched", self.url)
            return False
        self.url = self.base_url
        return True

    def navigate(self, url: str) -> None:
        """Simulate a page load at ``url`` (for example opening a share link)."""
        self.url = url
