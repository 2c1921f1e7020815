"""Contact data-access collaborator used by the built-in contact actions."""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Literal, Protocol

from pydantic import BaseModel, Field

TagMode = Literal["append", "replace", "remove"]


class ContactLog(BaseModel):
    type: str
    short_description: str = Field(default="")
    long_description: str = Field(default="")
    created_at: str = Field(default_factory=lambda: datetime.now(tz=UTC).isoformat())


class ContactsDataAccess(Protocol):
    """Record-level contact mutations, keyed by contact id.

    Implementations may raise any exception; actions let it propagate.
    """

    def add_contact_log(self, contact_id: int | str, log: ContactLog) -> None: ...

    def update_contact_tags(
        self, contact_id: int | str, tags: list[str], mode: TagMode
    ) -> list[str]: ...


class InMemoryContactStore:
    """Thread-safe in-memory implementation of :class:`ContactsDataAccess`."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._logs: dict[str, list[ContactLog]] = {}
        self._tags: dict[str, list[str]] = {}

    def add_contact_log(self, contact_id: int | str, log: ContactLog) -> None:
        with self._lock:
            self._logs.setdefault(str(contact_id), []).append(log)

    def update_contact_tags(
        self, contact_id: int | str, tags: list[str], mode: TagMode
    ) -> list[str]:
        key = str(contact_id)
        with self._lock:
            current = self._tags.get(key, [])
            if mode == "replace":
                updated = list(dict.fromkeys(tags))
            elif mode == "append":
                updated = list(dict.fromkeys([*current, *tags]))
            elif mode == "remove":
                updated = [tag for tag in current if tag not in tags]
            else:
                raise ValueError(f"Unsupported tag mode: {mode}")
            self._tags[key] = updated
            return list(updated)

    def get_logs(self, contact_id: int | str) -> list[ContactLog]:
        with self._lock:
            return list(self._logs.get(str(contact_id), []))

    def get_tags(self, contact_id: int | str) -> list[str]:
        with self._lock:
            return list(self._tags.get(str(contact_id), []))
