"""
In-memory record stores for users and snippets.

Records live only for the lifetime of the process.  Each store owns
its list of records and its ``next_id`` counter and guards both with
its own lock, so allocating an identifier and appending the record
happen as one step and concurrent writers never receive the same id.
A store never acquires another store's lock while holding its own.

Records are frozen dataclasses; nothing in the application mutates a
record once it has been created.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

from .errors import DuplicateEmail


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    password_hash: str


@dataclass(frozen=True)
class SnippetRecord:
    """A stored snippet.  ``code`` holds the encryption envelope text.

    ``owner_id`` is ``None`` for public snippets.
    """

    id: int
    language: str
    code: str
    owner_id: Optional[int] = None

    @property
    def is_public(self) -> bool:
        return self.owner_id is None


class UserStore(Protocol):
    """Operations the services need from user storage."""

    def create(self, email: str, password_hash: str) -> UserRecord:
        ...

    def get(self, user_id: int) -> Optional[UserRecord]:
        ...

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    def list(self) -> List[UserRecord]:
        ...


class SnippetStore(Protocol):
    """Operations the services need from snippet storage."""

    def create(self, language: str, code: str, owner_id: Optional[int] = None) -> SnippetRecord:
        ...

    def get(self, snippet_id: int) -> Optional[SnippetRecord]:
        ...

    def list(self) -> List[SnippetRecord]:
        ...

    def seed(self, records: Iterable[SnippetRecord]) -> None:
        ...


class _InMemoryCollection:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list = []
        self._next_id = 1

    @property
    def next_id(self) -> int:
        with self._lock:
            return self._next_id

    def _allocate_id(self) -> int:
        # Caller must hold self._lock.
        record_id = self._next_id
        self._next_id += 1
        return record_id

    def get(self, record_id: int):
        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    return record
        return None

    def list(self) -> list:
        with self._lock:
            return list(self._records)

    def reset(self) -> None:
        with self._lock:
            self._records = []
            self._next_id = 1


class InMemoryUserStore(_InMemoryCollection):
    """User records keyed by a case-insensitively unique email."""

    def create(self, email: str, password_hash: str) -> UserRecord:
        """Append a new user, raising ``DuplicateEmail`` on a clash.

        The uniqueness check, id allocation and append run under one
        lock acquisition.
        """
        wanted = email.lower()
        with self._lock:
            if any(user.email.lower() == wanted for user in self._records):
                raise DuplicateEmail()
            user = UserRecord(id=self._allocate_id(), email=email, password_hash=password_hash)
            self._records.append(user)
            return user

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        wanted = email.lower()
        with self._lock:
            for user in self._records:
                if user.email.lower() == wanted:
                    return user
        return None


class InMemorySnippetStore(_InMemoryCollection):
    """Append-only snippet records."""

    def create(self, language: str, code: str, owner_id: Optional[int] = None) -> SnippetRecord:
        with self._lock:
            snippet = SnippetRecord(id=self._allocate_id(), language=language, code=code, owner_id=owner_id)
            self._records.append(snippet)
            return snippet

    def seed(self, records: Iterable[SnippetRecord]) -> None:
        """Replace the contents with ``records``.

        The next identifier continues after the highest seeded id.
        """
        records = list(records)
        with self._lock:
            self._records = records
            self._next_id = max((record.id for record in records), default=0) + 1
