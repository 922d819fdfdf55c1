"""Composition root: builds and wires the stores for one CLI run.

Every dependency is constructed explicitly here and passed down; no
module looks anything up ambiently.
"""

from __future__ import annotations

from dataclasses import dataclass

from notes_client.config import ClientConfig, load_config
from notes_client.core.notification_queue import NotificationQueue
from notes_client.core.session_store import SessionStore
from notes_client.infra.asyncio_clock import AsyncioClock
from notes_client.infra.http_identity_service import HttpIdentityService
from notes_client.infra.token_storage import FileTokenStorage


@dataclass(slots=True)
class Runtime:
    """The wired object graph for one command."""

    config: ClientConfig
    identity: HttpIdentityService
    storage: FileTokenStorage
    clock: AsyncioClock
    notifications: NotificationQueue
    session: SessionStore


def build_runtime(config: ClientConfig | None = None) -> Runtime:
    """Construct the session store and notification queue.

    The identity service's 401/403 hook is wired to
    :meth:`SessionStore.handle_auth_failure`, so any authenticated call
    that is rejected ends the session.
    """
    config = config or load_config()
    clock = AsyncioClock()
    storage = FileTokenStorage(config.token_path)
    identity = HttpIdentityService.from_config(config)
    notifications = NotificationQueue(clock, default_duration_ms=config.notification_duration_ms)
    session = SessionStore(identity, storage, clock, notifications=notifications)
    identity.add_auth_failure_listener(session.handle_auth_failure)
    return Runtime(
        config=config,
        identity=identity,
        storage=storage,
        clock=clock,
        notifications=notifications,
        session=session,
    )
