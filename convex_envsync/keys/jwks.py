"""One-shot JWT signing key setup (RSA private key + JWKS).

Convex Auth expects two deployment variables:

- ``JWT_PRIVATE_KEY``: PKCS#8 PEM, trailing whitespace trimmed and newlines
  replaced by spaces so it survives single-line transport.
- ``JWKS``: ``{"keys": [{"use": "sig", ...}]}`` publishing the public key.

The modulus and exponent in the JWKS must be URL-safe base64 without
padding.  Standard base64 (``+``, ``/``, ``=``) makes token verification
fail silently downstream, so every generated document is validated before
it is returned or stored.

Keys are generated once.  :func:`ensure_jwt_keys` refuses to overwrite an
existing ``JWT_PRIVATE_KEY`` unless forced, because rotating it invalidates
every issued session.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from convex_envsync.errors import InvalidKeySetError
from convex_envsync.store.base import NOT_FOUND, RemoteStoreClient

logger = logging.getLogger(__name__)

PRIVATE_KEY_VAR = "JWT_PRIVATE_KEY"
JWKS_VAR = "JWKS"

DEFAULT_KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537

_FORBIDDEN_CHARS = ("+", "/", "=")


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------


def b64url_uint(value: int) -> str:
    """Encode a non-negative integer as unpadded URL-safe base64.

    Uses the minimal big-endian byte representation (RFC 7518 §6.3.1).
    """
    if value < 0:
        raise ValueError("value must be non-negative")
    length = max(1, (value.bit_length() + 7) // 8)
    raw = value.to_bytes(length, "big")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def private_key_env_value(pem: str) -> str:
    """Return the single-line form of *pem* stored as ``JWT_PRIVATE_KEY``."""
    return pem.rstrip().replace("\n", " ")


# ---------------------------------------------------------------------------
# SecretKeyPair
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SecretKeyPair:
    """A generated private key and its public JWKS document."""

    private_key_pem: str = field(repr=False)
    jwks: Dict[str, Any] = field(default_factory=dict)

    @property
    def jwk(self) -> Dict[str, Any]:
        return self.jwks["keys"][0]

    def jwks_json(self) -> str:
        return json.dumps(self.jwks, separators=(",", ":"))

    def env_values(self) -> Dict[str, str]:
        """Return ``{JWT_PRIVATE_KEY: ..., JWKS: ...}`` ready to store."""
        return {
            PRIVATE_KEY_VAR: private_key_env_value(self.private_key_pem),
            JWKS_VAR: self.jwks_json(),
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_jwks(jwks: Dict[str, Any]) -> None:
    """Check *jwks* is an RSA signing key set with unpadded base64url fields.

    Raises :class:`InvalidKeySetError` describing the first problem found.
    """
    keys = jwks.get("keys") if isinstance(jwks, dict) else None
    if not isinstance(keys, list) or not keys:
        raise InvalidKeySetError("JWKS must contain a non-empty 'keys' list")
    for index, jwk in enumerate(keys):
        if not isinstance(jwk, dict):
            raise InvalidKeySetError(f"keys[{index}] is not an object")
        if jwk.get("kty") != "RSA":
            raise InvalidKeySetError(f"keys[{index}].kty must be 'RSA'")
        for name in ("n", "e"):
            value = jwk.get(name)
            if not isinstance(value, str) or not value:
                raise InvalidKeySetError(f"keys[{index}].{name} is missing")
            bad = [c for c in _FORBIDDEN_CHARS if c in value]
            if bad:
                raise InvalidKeySetError(
                    f"keys[{index}].{name} is standard base64 (contains "
                    f"{' '.join(repr(c) for c in bad)}); expected URL-safe "
                    "base64 without padding"
                )


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def generate(key_size: int = DEFAULT_KEY_SIZE) -> SecretKeyPair:
    """Generate an RSA key pair and its JWKS record."""
    key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")

    numbers = key.public_key().public_numbers()
    jwks = {
        "keys": [
            {
                "use": "sig",
                "kty": "RSA",
                "alg": "RS256",
                "n": b64url_uint(numbers.n),
                "e": b64url_uint(numbers.e),
            }
        ]
    }
    validate_jwks(jwks)
    return SecretKeyPair(private_key_pem=pem, jwks=jwks)


# ---------------------------------------------------------------------------
# Idempotent setup against a store
# ---------------------------------------------------------------------------


class KeySetupStatus(str, Enum):
    """Outcome of :func:`ensure_jwt_keys`."""

    CREATED = "CREATED"
    REPLACED = "REPLACED"
    ALREADY_EXISTS = "ALREADY_EXISTS"


@dataclass
class KeySetupResult:
    """What :func:`ensure_jwt_keys` did."""

    status: KeySetupStatus
    key_pair: Optional[SecretKeyPair] = None

    @property
    def changed(self) -> bool:
        return self.status != KeySetupStatus.ALREADY_EXISTS


def ensure_jwt_keys(
    client: RemoteStoreClient,
    *,
    force: bool = False,
    generator: Callable[[], SecretKeyPair] = generate,
) -> KeySetupResult:
    """Generate and store JWT keys unless both variables already exist.

    The private key is written before the JWKS.  A half-written pair (one
    variable set, the other missing) is regenerated as a whole, so a re-run
    after a failed ``JWKS`` write converges.  Store errors propagate.
    """
    has_key = client.get(PRIVATE_KEY_VAR) is not NOT_FOUND
    has_jwks = client.get(JWKS_VAR) is not NOT_FOUND
    if has_key and has_jwks and not force:
        logger.info("%s and %s already set; leaving keys untouched.", PRIVATE_KEY_VAR, JWKS_VAR)
        return KeySetupResult(status=KeySetupStatus.ALREADY_EXISTS)
    if has_key != has_jwks:
        logger.warning(
            "Only %s is set; regenerating both variables.",
            PRIVATE_KEY_VAR if has_key else JWKS_VAR,
        )

    pair = generator()
    validate_jwks(pair.jwks)

    for name, value in pair.env_values().items():
        client.set(name, value)

    status = KeySetupStatus.REPLACED if has_key or has_jwks else KeySetupStatus.CREATED
    logger.info("JWT keys %s on %s.", status.value.lower(), client.name)
    return KeySetupResult(status=status, key_pair=pair)
