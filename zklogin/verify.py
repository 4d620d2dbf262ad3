"""Server side proof verification."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .commitment import decode_commitment, decode_salt
from .crypto import DEFAULT_KEY, ProvingBackend, SchnorrBackend, VerificationKey, decode_public_signals
from .errors import CredentialStoreCorrupt, MalformedCredential, VerificationKeyUnavailable

logger = logging.getLogger(__name__)


def verify(
    proof: object,
    public_signals: Sequence[object],
    expected_commitment: str,
    *,
    key: Optional[VerificationKey] = DEFAULT_KEY,
    expected_salt: Optional[str] = None,
    backend: Optional[ProvingBackend] = None,
) -> bool:
    """Decide whether ``proof`` is valid for the stored ``expected_commitment``.

    The commitment embedded in ``public_signals`` must equal the one the
    server looked up itself; a proof for any other credential is rejected.
    Raises :class:`MalformedProof` when the proof or signals cannot be
    decoded and :class:`VerificationKeyUnavailable` when ``key`` is missing.
    """

    if key is None:
        raise VerificationKeyUnavailable("No verification key loaded")

    try:
        expected = decode_commitment(expected_commitment, key)
        stored_salt = decode_salt(expected_salt) if expected_salt is not None else None
    except MalformedCredential as exc:
        # Stored credentials are validated at signup.
        raise CredentialStoreCorrupt(f"Stored credential is malformed: {exc}") from exc

    signals = decode_public_signals(public_signals, key)
    if signals.commitment != expected:
        logger.debug("Public signals are bound to a different commitment")
        return False
    if stored_salt is not None and signals.salt != stored_salt:
        logger.debug("Public signals are bound to a different salt")
        return False

    backend = backend or SchnorrBackend()
    return backend.verify(proof, public_signals, key)


__all__ = ["verify"]
