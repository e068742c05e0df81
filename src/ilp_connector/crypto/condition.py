"""Structural validation of crypto-condition URIs.

Condition format:
- cc:<type>:<features>:<fingerprint>:<max fulfillment length>
where type and features are lowercase hex, the fingerprint is unpadded
base64url and the max fulfillment length is decimal.

Ledgers sign notifications with ed25519, whose condition fingerprint is the
raw 32-byte public key.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from ilp_connector.errors import InvalidConditionError

CONDITION_REGEX = re.compile(
    r"^cc:([1-9a-f][0-9a-f]{0,3}|0):([1-9a-f][0-9a-f]{0,15}):([a-zA-Z0-9_-]{0,86}):([1-9][0-9]{0,17}|0)$"
)

PREIMAGE_SHA256 = 0
PREFIX_SHA256 = 1
THRESHOLD_SHA256 = 2
RSA_SHA256 = 3
ED25519 = 4

CONDITION_TYPE_NAMES = {
    PREIMAGE_SHA256: "preimage-sha-256",
    PREFIX_SHA256: "prefix-sha-256",
    THRESHOLD_SHA256: "threshold-sha-256",
    RSA_SHA256: "rsa-sha-256",
    ED25519: "ed25519",
}

FINGERPRINT_LENGTH = 32
ED25519_FULFILLMENT_LENGTH = 96


@dataclass(frozen=True)
class Condition:
    type_id: int
    features: int
    fingerprint: bytes
    max_fulfillment_length: int

    @property
    def type_name(self) -> str:
        return CONDITION_TYPE_NAMES[self.type_id]


def decode_b64url(data: str) -> bytes:
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except ValueError as exc:
        raise InvalidConditionError("invalid base64url fingerprint") from exc


def encode_b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def parse_condition(uri: object) -> Condition:
    if not isinstance(uri, str):
        raise InvalidConditionError("condition must be a string")
    match = CONDITION_REGEX.fullmatch(uri)
    if match is None:
        raise InvalidConditionError("condition is not a valid cc: URI")

    type_id = int(match.group(1), 16)
    if type_id not in CONDITION_TYPE_NAMES:
        raise InvalidConditionError(f"unsupported condition type: {type_id}")

    return Condition(
        type_id=type_id,
        features=int(match.group(2), 16),
        fingerprint=decode_b64url(match.group(3)),
        max_fulfillment_length=int(match.group(4)),
    )


def validate_condition(uri: object) -> Condition:
    condition = parse_condition(uri)
    if len(condition.fingerprint) != FINGERPRINT_LENGTH:
        raise InvalidConditionError(
            f"{condition.type_name} fingerprint must be {FINGERPRINT_LENGTH} bytes"
        )
    if condition.type_id == ED25519:
        if condition.max_fulfillment_length != ED25519_FULFILLMENT_LENGTH:
            raise InvalidConditionError(
                f"ed25519 max fulfillment length must be {ED25519_FULFILLMENT_LENGTH}"
            )
        try:
            Ed25519PublicKey.from_public_bytes(condition.fingerprint)
        except ValueError as exc:
            raise InvalidConditionError(f"invalid ed25519 public key: {exc}") from exc
    return condition


def ed25519_condition(public_key: bytes) -> str:
    """Build the condition URI for an ed25519 public key."""
    Ed25519PublicKey.from_public_bytes(public_key)
    return f"cc:{ED25519:x}:20:{encode_b64url(public_key)}:{ED25519_FULFILLMENT_LENGTH}"
