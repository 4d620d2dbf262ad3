"""Zero-knowledge password login: commitments at signup, proofs at login."""

from .auth import AuthOrchestrator, AuthOutcome, AuthState, authenticate, register_user
from .commitment import commitment_for, create_commitment, generate_salt, password_to_field
from .crypto import (
    DEFAULT_KEY,
    ProvingBackend,
    SchnorrBackend,
    SchnorrProof,
    VerificationKey,
    Witness,
    load_verification_key,
    save_verification_key,
)
from .errors import (
    AlreadyExists,
    CredentialStoreCorrupt,
    InvalidPassword,
    MalformedCredential,
    MalformedProof,
    NotFound,
    ProvingBackendError,
    RandomnessUnavailable,
    SystemFault,
    VerificationKeyUnavailable,
    WitnessMismatch,
    ZKLoginError,
)
from .proof import generate_proof, generate_proof_async
from .store import Credential, CredentialStore, InMemoryCredentialStore, JsonCredentialStore
from .verify import verify

__all__ = [
    "AuthOrchestrator",
    "AuthOutcome",
    "AuthState",
    "authenticate",
    "register_user",
    "commitment_for",
    "create_commitment",
    "generate_salt",
    "password_to_field",
    "DEFAULT_KEY",
    "ProvingBackend",
    "SchnorrBackend",
    "SchnorrProof",
    "VerificationKey",
    "Witness",
    "load_verification_key",
    "save_verification_key",
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
    "generate_proof",
    "generate_proof_async",
    "Credential",
    "CredentialStore",
    "InMemoryCredentialStore",
    "JsonCredentialStore",
    "verify",
]
