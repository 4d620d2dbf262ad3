"""Signup and login orchestration."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from .commitment import create_commitment, decode_commitment, decode_salt
from .crypto import DEFAULT_KEY, ProvingBackend, VerificationKey
from .errors import AlreadyExists, MalformedProof, NotFound, WitnessMismatch
from .proof import generate_proof
from .store import Credential, CredentialStore
from .verify import verify

logger = logging.getLogger(__name__)


class AuthState(str, enum.Enum):
    IDLE = "idle"
    CREDENTIAL_LOOKUP = "credential-lookup"
    NOT_FOUND = "not-found"
    PROOF_VERIFICATION = "proof-verification"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMMITMENT_REGISTRATION = "commitment-registration"
    STORED = "stored"
    CONFLICT = "conflict"


TERMINAL_STATES = frozenset(
    {AuthState.NOT_FOUND, AuthState.ACCEPTED, AuthState.REJECTED, AuthState.STORED, AuthState.CONFLICT}
)

REASON_INVALID_PROOF = "invalid-proof"
REASON_MALFORMED_PROOF = "malformed-proof"


@dataclass
class AuthOutcome:
    """Terminal state reached by one request.

    ``reason`` is for server-side diagnostics only and must not be shown to
    the client.
    """

    account_id: str
    state: AuthState
    reason: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state in (AuthState.ACCEPTED, AuthState.STORED)


class AuthOrchestrator:
    """Server side control flow for signup, login data and login requests.

    Each call is independent; nothing is remembered between requests.
    """

    def __init__(
        self,
        store: CredentialStore,
        verification_key: Optional[VerificationKey],
        backend: Optional[ProvingBackend] = None,
    ) -> None:
        self.store = store
        self.verification_key = verification_key
        self.backend = backend

    def signup(self, account_id: str, salt: str, commitment: str) -> AuthOutcome:
        decode_salt(salt)
        decode_commitment(commitment, self.verification_key or DEFAULT_KEY)

        logger.debug("%s: %s", account_id, AuthState.COMMITMENT_REGISTRATION.value)
        try:
            self.store.put(account_id, Credential(salt=salt.lower(), commitment=commitment.lower()))
        except AlreadyExists:
            logger.info("Signup conflict for %s", account_id)
            return AuthOutcome(account_id, AuthState.CONFLICT)
        logger.info("Registered credential for %s", account_id)
        return AuthOutcome(account_id, AuthState.STORED)

    def login_data(self, account_id: str) -> Credential:
        return self.store.get(account_id)

    def login(self, account_id: str, proof: object, public_signals: Sequence[object]) -> AuthOutcome:
        logger.debug("%s: %s", account_id, AuthState.CREDENTIAL_LOOKUP.value)
        try:
            credential = self.store.get(account_id)
        except NotFound:
            logger.info("Login for unknown account %s", account_id)
            return AuthOutcome(account_id, AuthState.NOT_FOUND)

        logger.debug("%s: %s", account_id, AuthState.PROOF_VERIFICATION.value)
        try:
            accepted = verify(
                proof,
                public_signals,
                credential.commitment,
                key=self.verification_key,
                expected_salt=credential.salt,
                backend=self.backend,
            )
        except MalformedProof as exc:
            logger.info("Rejected login for %s: malformed proof (%s)", account_id, exc)
            return AuthOutcome(account_id, AuthState.REJECTED, REASON_MALFORMED_PROOF)

        if not accepted:
            logger.info("Rejected login for %s: proof did not verify", account_id)
            return AuthOutcome(account_id, AuthState.REJECTED, REASON_INVALID_PROOF)
        logger.info("Accepted login for %s", account_id)
        return AuthOutcome(account_id, AuthState.ACCEPTED)


def register_user(
    orchestrator: AuthOrchestrator,
    account_id: str,
    password: str,
) -> Dict[str, object]:
    """Run the client half of signup and submit it to ``orchestrator``."""

    key = orchestrator.verification_key or DEFAULT_KEY
    salt, commitment = create_commitment(password, key=key)
    outcome = orchestrator.signup(account_id, salt, commitment)
    return {
        "account_id": account_id,
        "state": outcome.state.value,
        "success": outcome.success,
        "salt": salt,
        "commitment": commitment,
    }


def authenticate(
    orchestrator: AuthOrchestrator,
    account_id: str,
    password: str,
) -> Dict[str, object]:
    """Fetch login data, prove knowledge of ``password`` and submit the proof.

    A wrong password is caught while building the witness, in which case no
    proof is submitted and the result reports invalid credentials.
    """

    try:
        credential = orchestrator.login_data(account_id)
    except NotFound:
        return {"account_id": account_id, "state": AuthState.NOT_FOUND.value, "success": False}

    key = orchestrator.verification_key or DEFAULT_KEY
    try:
        proof, signals = generate_proof(
            password, credential.salt, credential.commitment, key=key, backend=orchestrator.backend
        )
    except WitnessMismatch:
        return {"account_id": account_id, "state": AuthState.REJECTED.value, "success": False}

    outcome = orchestrator.login(account_id, proof, signals)
    return {
        "account_id": account_id,
        "state": outcome.state.value,
        "success": outcome.success,
        "proof": proof,
        "public_signals": signals,
    }


__all__ = [
    "AuthOrchestrator",
    "AuthOutcome",
    "AuthState",
    "TERMINAL_STATES",
    "authenticate",
    "register_user",
]
