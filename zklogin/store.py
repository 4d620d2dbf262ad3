"""Credential stores keyed by account identifier."""

from __future__ import annotations

import abc
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from typing import Dict

from .errors import AlreadyExists, CredentialStoreCorrupt, NotFound

logger = logging.getLogger(__name__)

_PATH_LOCKS: Dict[str, threading.Lock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: str) -> threading.Lock:
    resolved = os.path.realpath(path)
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(resolved, threading.Lock())


@dataclass(frozen=True)
class Credential:
    """Salt and commitment registered for one account."""

    salt: str
    commitment: str

    def to_dict(self) -> Dict[str, str]:
        return {"salt": self.salt, "commitment": self.commitment}

    @staticmethod
    def from_dict(data: Dict[str, str]) -> "Credential":
        try:
            return Credential(salt=str(data["salt"]), commitment=str(data["commitment"]))
        except (KeyError, TypeError) as exc:
            raise CredentialStoreCorrupt(f"Stored credential is missing fields: {exc}") from exc


class CredentialStore(abc.ABC):
    """Map account ids to credentials with atomic check-and-insert."""

    @abc.abstractmethod
    def put(self, account_id: str, credential: Credential) -> None:
        """Store ``credential``; raise :class:`AlreadyExists` if ``account_id`` is taken."""

    @abc.abstractmethod
    def get(self, account_id: str) -> Credential:
        """Return the credential; raise :class:`NotFound` if there is none."""


class InMemoryCredentialStore(CredentialStore):
    def __init__(self) -> None:
        self._credentials: Dict[str, Credential] = {}
        self._lock = threading.Lock()

    def put(self, account_id: str, credential: Credential) -> None:
        with self._lock:
            if account_id in self._credentials:
                raise AlreadyExists(account_id)
            self._credentials[account_id] = credential

    def get(self, account_id: str) -> Credential:
        credential = self._credentials.get(account_id)
        if credential is None:
            raise NotFound(account_id)
        return credential

    def __len__(self) -> int:
        return len(self._credentials)


class JsonCredentialStore(CredentialStore):
    """Persist credentials in a JSON document.

    Writes go through a temporary file and ``os.replace`` so readers never see
    a partial document. Instances opened on the same path share one lock, but
    the lock only serialises writers inside this process.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = _lock_for(path)

    def _load(self) -> Dict[str, Dict[str, Dict[str, str]]]:
        if not os.path.exists(self.path):
            return {"accounts": {}}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as exc:
            raise CredentialStoreCorrupt(f"Cannot read credential store {self.path}: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("accounts", {}), dict):
            raise CredentialStoreCorrupt(f"Credential store {self.path} has an unexpected layout")
        return payload

    def _save(self, payload: Dict[str, Dict[str, Dict[str, str]]]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".credentials-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def get(self, account_id: str) -> Credential:
        raw = self._load().get("accounts", {}).get(account_id)
        if raw is None:
            raise NotFound(account_id)
        return Credential.from_dict(raw)

    def put(self, account_id: str, credential: Credential) -> None:
        with self._lock:
            payload = self._load()
            accounts = payload.setdefault("accounts", {})
            if account_id in accounts:
                raise AlreadyExists(account_id)
            accounts[account_id] = credential.to_dict()
            self._save(payload)
        logger.debug("Persisted credential for %s to %s", account_id, self.path)


def open_store(path: str | None) -> CredentialStore:
    """Return an in-memory store for ``None``/``":memory:"``, else a JSON store."""

    if path is None or path == ":memory:":
        return InMemoryCredentialStore()
    return JsonCredentialStore(path)


__all__ = [
    "Credential",
    "CredentialStore",
    "InMemoryCredentialStore",
    "JsonCredentialStore",
    "open_store",
]
