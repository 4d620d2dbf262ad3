"""Exception hierarchy for the zero-knowledge login protocol."""

from __future__ import annotations


class ZKLoginError(Exception):
    """Base class for every error raised by this package."""


class InvalidPassword(ZKLoginError, ValueError):
    """The password is empty or cannot be mapped into the proof field."""


class MalformedCredential(ZKLoginError, ValueError):
    """A salt or commitment does not have the expected encoding."""


class MalformedProof(ZKLoginError, ValueError):
    """A proof or its public signals could not be decoded."""


class WitnessMismatch(ZKLoginError):
    """The supplied password does not open the commitment."""


class NotFound(ZKLoginError):
    """No credential is stored for the account."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Unknown account {account_id!r}")
        self.account_id = account_id


class AlreadyExists(ZKLoginError):
    """A credential is already stored for the account."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id!r} already registered")
        self.account_id = account_id


class SystemFault(ZKLoginError):
    """Server or client side failure unrelated to the user's input."""


class RandomnessUnavailable(SystemFault):
    """The secure random source could not be read."""


class ProvingBackendError(SystemFault):
    """The proving capability failed internally."""


class VerificationKeyUnavailable(SystemFault):
    """The verification key could not be loaded."""


class CredentialStoreCorrupt(SystemFault):
    """A stored credential could not be read back."""


__all__ = [
    "AlreadyExists",
    "CredentialStoreCorrupt",
    "InvalidPassword",
    "MalformedCredential",
    "MalformedProof",
    "NotFound",
    "ProvingBackendError",
    "RandomnessUnavailable",
    "SystemFault",
    "VerificationKeyUnavailable",
    "WitnessMismatch",
    "ZKLoginError",
]
