# storefront/app/services/persistent_store.py
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from storefront.app.core.config import settings

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.\-]{1,64}$")


@runtime_checkable
class PersistentStore(Protocol):
    """
    Durable key/value storage for the browser-session equivalents
    (cart snapshot, bearer token, user id). Last write wins; no merging.
    Values must be JSON-compatible.
    """
    def save(self, key: str, value: Any) -> None: ...
    def load(self, key: str) -> Optional[Any]: ...
    def remove(self, key: str) -> None: ...


def _check_key(key: str) -> str:
    if not isinstance(key, str) or not _KEY_RE.match(key):
        raise ValueError(f"invalid store key: {key!r}")
    return key


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


# =========================================================
# memory
# =========================================================

class MemoryStore:
    """Process-local store. Values are kept as JSON text so callers never share references."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def save(self, key: str, value: Any) -> None:
        self._data[_check_key(key)] = _dumps(value)

    def load(self, key: str) -> Optional[Any]:
        raw = self._data.get(_check_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def remove(self, key: str) -> None:
        self._data.pop(_check_key(key), None)

    def keys(self) -> List[str]:
        return sorted(self._data)


# =========================================================
# file (one JSON document per key, atomic replace)
# =========================================================

def _atomic_write(path: Path, data: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(data, encoding="utf-8")
    tmp.replace(path)


class JsonFileStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{_check_key(key)}.json"

    def save(self, key: str, value: Any) -> None:
        _atomic_write(self._path(key), _dumps(value))

    def load(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("store: unreadable JSON in %s; treating as absent", path)
            return None

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# =========================================================
# redis
# =========================================================

class RedisStore:
    def __init__(self, client: Any = None, prefix: str = "") -> None:
        if client is None:
            from storefront.app.core.redis_conn import get_sync_redis
            client = get_sync_redis()
        self._client = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{_check_key(key)}"

    def save(self, key: str, value: Any) -> None:
        self._client.set(self._key(key), _dumps(value))

    def load(self, key: str) -> Optional[Any]:
        raw = self._client.get(self._key(key))
        if raw is None:
            return None
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="ignore")
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("store: unreadable JSON under %s; treating as absent", self._key(key))
            return None

    def remove(self, key: str) -> None:
        self._client.delete(self._key(key))


# =========================================================
# settings-driven singleton
# =========================================================

_STORE: Optional[PersistentStore] = None


def _new_store() -> PersistentStore:
    backend = (settings.store_backend or "file").lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "file":
        return JsonFileStore(settings.store_dir)
    if backend == "redis":
        return RedisStore(prefix=settings.redis_key_prefix)
    raise ValueError(f"unknown store backend: {settings.store_backend!r}")


def get_store() -> PersistentStore:
    global _STORE
    if _STORE is None:
        _STORE = _new_store()
    return _STORE


def reset_store(store: Optional[PersistentStore] = None) -> PersistentStore:
    """
    Replace the process-wide store (a fresh one from settings when omitted).
    Useful for tests.
    """
    global _STORE
    _STORE = store if store is not None else _new_store()
    return _STORE
