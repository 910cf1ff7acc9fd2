from __future__ import annotations

from types import SimpleNamespace

import pytest


class _FakeTransaction:
    async def __aenter__(self) -> object:
        return SimpleNamespace()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


@pytest.fixture
def fake_session_local() -> SimpleNamespace:
    return SimpleNamespace(begin=lambda: _FakeTransaction())
