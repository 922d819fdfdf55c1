"""Shared pytest fixtures and helpers for the notes-client test suite.

Guidelines
----------
* No network access in any test: the identity API is either a mock or
  an ``httpx.MockTransport``.
* Time is a :class:`ManualClock`; no test sleeps.
* Tests must not depend on OS state (token files live in ``tmp_path``).
"""

from __future__ import annotations

import base64
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest

from notes_client.core.clock import ManualClock
from notes_client.core.models import AuthPayload, UserProfile
from notes_client.infra.token_storage import MemoryTokenStorage

START_MS = 1_700_000_000_000.0
"""Epoch milliseconds every :class:`ManualClock` fixture starts at."""

_SIGNING_KEY = "notes-client-test-signing-key-0123456789"


# ---------------------------------------------------------------------------
# Token factories
# ---------------------------------------------------------------------------

def make_token(exp_ms: float | None, **claims: Any) -> str:
    """Signed JWT whose ``exp`` claim is *exp_ms* (epoch ms), or absent."""
    payload: dict[str, Any] = {"id": "u1", **claims}
    if exp_ms is not None:
        payload["exp"] = int(exp_ms // 1000)
    return jwt.encode(payload, _SIGNING_KEY, algorithm="HS256")


def make_raw_token(payload: Any) -> str:
    """Three-segment token with an arbitrary JSON payload and fake signature."""

    def segment(value: Any) -> str:
        raw = json.dumps(value).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    return f"{segment({'alg': 'HS256', 'typ': 'JWT'})}.{segment(payload)}.c2ln"


def make_user(**overrides: Any) -> UserProfile:
    fields: dict[str, Any] = {"id": "u1", "name": "Ada Lovelace", "email": "ada@example.com"}
    fields.update(overrides)
    return UserProfile(**fields)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start_ms=START_MS)


@pytest.fixture
def storage() -> MemoryTokenStorage:
    return MemoryTokenStorage()


@pytest.fixture
def identity() -> MagicMock:
    """Mock IdentityService: sync token setters, async remote calls.

    ``login``/``register`` succeed with a token valid for one hour by
    default; override ``return_value``/``side_effect`` per test.
    """
    service = MagicMock()
    valid = make_token(START_MS + 3_600_000)
    user = make_user()
    service.login = AsyncMock(return_value=AuthPayload(token=valid, user=user))
    service.register = AsyncMock(return_value=AuthPayload(token=valid, user=user))
    service.logout = AsyncMock(return_value=None)
    service.get_current_user = AsyncMock(return_value=user)
    service.refresh_token = AsyncMock(return_value=valid)
    service.update_profile = AsyncMock(return_value=user)
    service.change_password = AsyncMock(return_value=None)
    service.get_user_stats = AsyncMock(return_value={"notes": 3})
    return service
