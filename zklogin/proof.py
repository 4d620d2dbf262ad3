"""Client side proof generation."""

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import Executor
from typing import Dict, List, Optional, Tuple

from .commitment import decode_commitment, decode_salt, derive_witness_scalar
from .crypto import DEFAULT_KEY, ProvingBackend, SchnorrBackend, VerificationKey, Witness
from .errors import MalformedCredential, ProvingBackendError, WitnessMismatch

logger = logging.getLogger(__name__)


def build_witness(password: str, salt: str, commitment: str, key: VerificationKey = DEFAULT_KEY) -> Witness:
    """Derive the witness for ``password`` and check it opens ``commitment``."""

    try:
        salt_bytes = decode_salt(salt)
        expected = decode_commitment(commitment, key)
    except MalformedCredential as exc:
        raise ProvingBackendError(f"Malformed proving input: {exc}") from exc

    scalar = derive_witness_scalar(password, salt_bytes, key)
    if pow(key.g, scalar, key.p) != expected:
        raise WitnessMismatch("Password does not match the commitment")
    return Witness(scalar=scalar, commitment=expected, salt=salt_bytes)


def generate_proof(
    password: str,
    salt: str,
    commitment: str,
    *,
    key: VerificationKey = DEFAULT_KEY,
    backend: Optional[ProvingBackend] = None,
) -> Tuple[Dict[str, str], List[str]]:
    """Prove knowledge of a password opening ``commitment`` under ``salt``.

    Returns the serialised proof and the public signals ``[commitment, salt]``
    as decimal strings.  Raises :class:`WitnessMismatch` for a wrong password
    and :class:`ProvingBackendError` for anything else that goes wrong.
    """

    witness = build_witness(password, salt, commitment, key)
    backend = backend or SchnorrBackend()
    try:
        return backend.prove(witness, key)
    except ProvingBackendError:
        raise
    except Exception as exc:
        raise ProvingBackendError(f"Proving backend failed: {exc}") from exc


async def generate_proof_async(
    password: str,
    salt: str,
    commitment: str,
    *,
    key: VerificationKey = DEFAULT_KEY,
    backend: Optional[ProvingBackend] = None,
    executor: Optional[Executor] = None,
) -> Tuple[Dict[str, str], List[str]]:
    """Run :func:`generate_proof` off the event loop.

    Cancelling the awaiting task discards the computation; its result is
    never returned to the caller.
    """

    loop = asyncio.get_running_loop()
    call = functools.partial(generate_proof, password, salt, commitment, key=key, backend=backend)
    try:
        return await loop.run_in_executor(executor, call)
    except asyncio.CancelledError:
        logger.debug("Proof generation cancelled, discarding result")
        raise


__all__ = ["build_witness", "generate_proof", "generate_proof_async"]
