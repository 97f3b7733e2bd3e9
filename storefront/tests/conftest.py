from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx
import pytest

from storefront.app.services.persistent_store import MemoryStore
from storefront.app.services.session import build_session
from storefront.routes.mock_api import create_mock_api


@dataclass
class FakeRedisClient:
    """Just the string commands the store uses (values come back as bytes, like redis-py)."""
    data: Dict[str, bytes] = field(default_factory=dict)

    def ping(self) -> bool:
        return True

    def get(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> bool:
        self.data[key] = value.encode("utf-8")
        return True

    def delete(self, key: str) -> int:
        return 1 if self.data.pop(key, None) is not None else 0


@pytest.fixture
def fake_redis() -> FakeRedisClient:
    return FakeRedisClient()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def mock_session():
    """A session wired to an in-process stub of the remote API."""
    return build_session(
        store=MemoryStore(),
        base_url="http://mock",
        transport=httpx.ASGITransport(app=create_mock_api()),
    )
