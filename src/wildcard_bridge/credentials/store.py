"""Per-user credential storage for the transactional API.

The store maps a user ID to that user's Stripe secret key. Lookups happen on
every operation call and run concurrently; registration takes exclusive access.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from wildcard_bridge.telemetry import get_logger
from wildcard_bridge.telemetry.events import (
    CREDENTIAL_MISSING,
    CREDENTIAL_REGISTERED,
    CREDENTIAL_REMOVED,
)

log = get_logger(__name__)


class CredentialNotFound(KeyError):
    """Raised when no credential is registered for a user."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "credential not found"


class ReadWriteLock:
    """Reader/writer lock: many concurrent readers or one writer.

    Waiting writers block new readers so registration cannot starve.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class CredentialStore:
    """Concurrent map of user ID to API key."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._keys: dict[str, str] = {}
        self._lock = ReadWriteLock()

    def register_key(self, user_id: str, api_key: str) -> None:
        """Register (or replace) the API key for a user.

        Raises:
            ValueError: If user_id or api_key is empty.
        """
        if not user_id or not api_key:
            raise ValueError("userID and apiKey cannot be empty")

        with self._lock.write():
            self._keys[user_id] = api_key
        log.info(CREDENTIAL_REGISTERED, user_id=user_id)

    def get_key(self, user_id: str) -> str:
        """Return the API key registered for a user.

        Raises:
            ValueError: If user_id is empty.
            CredentialNotFound: If no key is registered.
        """
        if not user_id:
            raise ValueError("userID cannot be empty")

        with self._lock.read():
            key = self._keys.get(user_id)
        if key is None:
            log.warning(CREDENTIAL_MISSING, user_id=user_id)
            raise CredentialNotFound(f"no Stripe API key found for user {user_id}")
        return key

    def remove_key(self, user_id: str) -> None:
        """Remove a user's API key. Removing an unknown user is a no-op.

        Raises:
            ValueError: If user_id is empty.
        """
        if not user_id:
            raise ValueError("userID cannot be empty")

        with self._lock.write():
            removed = self._keys.pop(user_id, None) is not None
        if removed:
            log.info(CREDENTIAL_REMOVED, user_id=user_id)

    def __contains__(self, user_id: object) -> bool:
        with self._lock.read():
            return user_id in self._keys

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._keys)
