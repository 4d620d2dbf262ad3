"""Salted password commitments.

The commitment binds a password to a random salt as ``C = g^x mod p`` where
``x`` is derived from the password field element and the salt.  The same
derivation is used by :mod:`zklogin.proof` to rebuild the witness at login,
so both sides must agree on every byte fed into it:

* ``pwd_field`` is the first 31 bytes of SHA-256 over the UTF-8 password,
* ``x = SHAKE-256(domain || 0x00 || pwd_field || salt)`` over 64 bytes, reduced mod ``q``.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from typing import Callable, Tuple

from .constants import PASSWORD_FIELD_BYTES, SALT_BYTES, WITNESS_BYTES
from .crypto import DEFAULT_KEY, VerificationKey
from .errors import InvalidPassword, MalformedCredential, RandomnessUnavailable

logger = logging.getLogger(__name__)


def generate_salt(random_bytes: Callable[[int], bytes] = secrets.token_bytes) -> str:
    """Return a fresh salt as lowercase hex without prefix."""

    try:
        salt = random_bytes(SALT_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise RandomnessUnavailable("Secure random source unavailable") from exc
    if len(salt) != SALT_BYTES:
        raise RandomnessUnavailable("Secure random source returned a short read")
    return salt.hex()


def password_to_field(password: str) -> int:
    """Map a password into a 248-bit field element."""

    if not isinstance(password, str) or not password:
        raise InvalidPassword("Password must be a non-empty string")
    try:
        encoded = password.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidPassword("Password is not valid UTF-8") from exc
    digest = hashlib.sha256(encoded).digest()
    return int.from_bytes(digest[:PASSWORD_FIELD_BYTES], "big")


def decode_salt(salt: str) -> bytes:
    if not isinstance(salt, str) or len(salt) != 2 * SALT_BYTES:
        raise MalformedCredential(f"Salt must be {2 * SALT_BYTES} hex characters")
    try:
        raw = bytes.fromhex(salt)
    except ValueError as exc:
        raise MalformedCredential("Salt must be hex encoded") from exc
    if len(raw) != SALT_BYTES:
        raise MalformedCredential("Salt must be hex encoded")
    return raw


def decode_commitment(commitment: str, key: VerificationKey = DEFAULT_KEY) -> int:
    if not isinstance(commitment, str) or not commitment.startswith("0x"):
        raise MalformedCredential("Commitment must be 0x-prefixed hex")
    try:
        value = int(commitment, 16)
    except ValueError as exc:
        raise MalformedCredential("Commitment must be 0x-prefixed hex") from exc
    if not 1 < value < key.p:
        raise MalformedCredential("Commitment outside the group")
    if pow(value, key.q, key.p) != 1:
        raise MalformedCredential("Commitment is not a subgroup element")
    return value


def encode_commitment(value: int) -> str:
    return hex(value)


def derive_witness_scalar(password: str, salt: bytes, key: VerificationKey = DEFAULT_KEY) -> int:
    pwd_field = password_to_field(password)
    material = (
        key.domain.encode("utf-8")
        + b"\x00"
        + pwd_field.to_bytes(PASSWORD_FIELD_BYTES, "big")
        + salt
    )
    scalar = int.from_bytes(hashlib.shake_256(material).digest(WITNESS_BYTES), "big") % key.q
    if scalar == 0:
        raise InvalidPassword("Password maps to the identity commitment")
    return scalar


def commitment_for(password: str, salt: str, key: VerificationKey = DEFAULT_KEY) -> str:
    """Compute the commitment of ``password`` under an existing hex ``salt``."""

    scalar = derive_witness_scalar(password, decode_salt(salt), key)
    return encode_commitment(pow(key.g, scalar, key.p))


def create_commitment(
    password: str,
    *,
    key: VerificationKey = DEFAULT_KEY,
    random_bytes: Callable[[int], bytes] = secrets.token_bytes,
) -> Tuple[str, str]:
    """Return ``(salt, commitment)`` for a new credential."""

    password_to_field(password)
    salt = generate_salt(random_bytes)
    return salt, commitment_for(password, salt, key)


__all__ = [
    "commitment_for",
    "create_commitment",
    "decode_commitment",
    "decode_salt",
    "derive_witness_scalar",
    "encode_commitment",
    "generate_salt",
    "password_to_field",
]
