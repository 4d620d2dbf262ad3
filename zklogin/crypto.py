"""Schnorr proof-of-knowledge backend and verification key handling."""

from __future__ import annotations

import abc
import hashlib
import json
import logging
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from .constants import DOMAIN, G, P, PROTOCOL, Q, SALT_BYTES
from .errors import MalformedProof, ProvingBackendError, VerificationKeyUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationKey:
    """Public parameters every prover and verifier must agree on."""

    protocol: str
    p: int
    q: int
    g: int
    domain: str

    @property
    def width(self) -> int:
        return (self.p.bit_length() + 7) // 8

    def validate(self) -> None:
        if self.p < 5 or self.p % 2 == 0:
            raise ValueError("Modulus must be an odd prime")
        if self.q != (self.p - 1) // 2:
            raise ValueError("Subgroup order must be (p - 1) / 2")
        if not 1 < self.g < self.p - 1 or pow(self.g, self.q, self.p) != 1:
            raise ValueError("Generator must lie in the prime order subgroup")
        if not self.domain:
            raise ValueError("Domain tag must not be empty")

    def to_dict(self) -> Dict[str, str]:
        return {
            "protocol": self.protocol,
            "p": hex(self.p),
            "q": hex(self.q),
            "g": hex(self.g),
            "domain": self.domain,
        }

    @staticmethod
    def from_dict(data: Dict[str, str]) -> "VerificationKey":
        key = VerificationKey(
            protocol=str(data["protocol"]),
            p=int(data["p"], 16),
            q=int(data["q"], 16),
            g=int(data["g"], 16),
            domain=str(data["domain"]),
        )
        key.validate()
        return key


DEFAULT_KEY = VerificationKey(protocol=PROTOCOL, p=P, q=Q, g=G, domain=DOMAIN)


def load_verification_key(path: str | Path) -> VerificationKey:
    """Read and validate a verification key from a JSON file."""

    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
        return VerificationKey.from_dict(payload)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        raise VerificationKeyUnavailable(f"Cannot load verification key from {path}: {exc}") from exc


def save_verification_key(key: VerificationKey, path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(key.to_dict(), handle, indent=2)


def encode_int(value: int, width: int) -> bytes:
    return value.to_bytes(width, "big")


@dataclass(frozen=True)
class Witness:
    """Private input of the prover: the scalar opening ``commitment``."""

    scalar: int
    commitment: int
    salt: bytes


@dataclass(frozen=True)
class PublicSignals:
    """Decoded form of the public signals list."""

    commitment: int
    salt: bytes

    def to_list(self) -> List[str]:
        return [str(self.commitment), str(int.from_bytes(self.salt, "big"))]


@dataclass
class SchnorrProof:
    """Non-interactive proof that the prover knows ``log_g(commitment)``."""

    protocol: str
    nonce_commitment: int
    response: int

    def to_dict(self) -> Dict[str, str]:
        return {
            "protocol": self.protocol,
            "nonce_commitment": hex(self.nonce_commitment),
            "response": hex(self.response),
        }

    @staticmethod
    def from_dict(data: object) -> "SchnorrProof":
        if not isinstance(data, dict):
            raise MalformedProof("Proof must be an object")
        try:
            return SchnorrProof(
                protocol=str(data["protocol"]),
                nonce_commitment=int(data["nonce_commitment"], 16),
                response=int(data["response"], 16),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedProof(f"Cannot decode proof: {exc}") from exc


def decode_public_signals(signals: object, key: VerificationKey) -> PublicSignals:
    if not isinstance(signals, (list, tuple)) or len(signals) != 2:
        raise MalformedProof("Public signals must be a list of two values")
    try:
        commitment = int(str(signals[0]), 10)
        salt_value = int(str(signals[1]), 10)
    except ValueError as exc:
        raise MalformedProof(f"Public signals must be decimal integers: {exc}") from exc
    if not 0 < commitment < key.p:
        raise MalformedProof("Commitment signal outside the group")
    if not 0 <= salt_value < 2 ** (8 * SALT_BYTES):
        raise MalformedProof("Salt signal has the wrong length")
    return PublicSignals(commitment=commitment, salt=salt_value.to_bytes(SALT_BYTES, "big"))


def fiat_shamir_challenge(
    key: VerificationKey,
    commitment: int,
    salt: bytes,
    nonce_commitment: int,
) -> int:
    width = key.width
    hasher = hashlib.sha256()
    hasher.update(key.domain.encode("utf-8"))
    hasher.update(encode_int(key.p, width))
    hasher.update(encode_int(key.g, width))
    hasher.update(encode_int(commitment, width))
    hasher.update(salt)
    hasher.update(encode_int(nonce_commitment, width))
    return int.from_bytes(hasher.digest(), "big") % key.q


class ProvingBackend(abc.ABC):
    """Narrow interface over a proof system."""

    @abc.abstractmethod
    def prove(self, witness: Witness, key: VerificationKey) -> Tuple[Dict[str, str], List[str]]:
        """Return the serialised proof and its public signals."""

    @abc.abstractmethod
    def verify(self, proof: object, public_signals: Sequence[object], key: VerificationKey) -> bool:
        """Check a serialised proof; raise ``MalformedProof`` if it cannot be decoded."""


class SchnorrBackend(ProvingBackend):
    """Schnorr identification made non-interactive with Fiat-Shamir."""

    @staticmethod
    def random_nonce(key: VerificationKey) -> int:
        try:
            return secrets.randbelow(key.q - 1) + 1
        except (OSError, NotImplementedError) as exc:
            raise ProvingBackendError("Secure randomness unavailable for the proof nonce") from exc

    def prove(self, witness: Witness, key: VerificationKey) -> Tuple[Dict[str, str], List[str]]:
        if key.protocol != PROTOCOL:
            raise ProvingBackendError(f"Unsupported protocol {key.protocol!r}")
        if not 0 < witness.scalar < key.q:
            raise ProvingBackendError("Witness scalar outside of the subgroup order")
        if len(witness.salt) != SALT_BYTES:
            raise ProvingBackendError("Witness salt has the wrong length")

        nonce = self.random_nonce(key)
        nonce_commitment = pow(key.g, nonce, key.p)
        challenge = fiat_shamir_challenge(key, witness.commitment, witness.salt, nonce_commitment)
        response = (nonce + challenge * witness.scalar) % key.q
        proof = SchnorrProof(protocol=key.protocol, nonce_commitment=nonce_commitment, response=response)
        signals = PublicSignals(commitment=witness.commitment, salt=witness.salt)
        return proof.to_dict(), signals.to_list()

    def verify(self, proof: object, public_signals: Sequence[object], key: VerificationKey) -> bool:
        decoded = SchnorrProof.from_dict(proof)
        signals = decode_public_signals(public_signals, key)

        if decoded.protocol != key.protocol:
            raise MalformedProof(f"Unexpected proof protocol {decoded.protocol!r}")
        if not 0 < decoded.nonce_commitment < key.p:
            raise MalformedProof("Nonce commitment outside the group")
        if not 0 <= decoded.response < key.q:
            raise MalformedProof("Response outside of the subgroup order")
        if pow(signals.commitment, key.q, key.p) != 1:
            raise MalformedProof("Commitment is not a subgroup element")
        if pow(decoded.nonce_commitment, key.q, key.p) != 1:
            raise MalformedProof("Nonce commitment is not a subgroup element")

        challenge = fiat_shamir_challenge(key, signals.commitment, signals.salt, decoded.nonce_commitment)
        left = pow(key.g, decoded.response, key.p)
        right = (decoded.nonce_commitment * pow(signals.commitment, challenge, key.p)) % key.p
        return left == right


__all__ = [
    "DEFAULT_KEY",
    "ProvingBackend",
    "PublicSignals",
    "SchnorrBackend",
    "SchnorrProof",
    "VerificationKey",
    "Witness",
    "decode_public_signals",
    "fiat_shamir_challenge",
    "load_verification_key",
    "save_verification_key",
]
