"""JWT signing key generation and one-shot setup."""

from convex_envsync.keys.jwks import (
    JWKS_VAR,
    PRIVATE_KEY_VAR,
    KeySetupResult,
    KeySetupStatus,
    SecretKeyPair,
    b64url_uint,
    ensure_jwt_keys,
    generate,
    private_key_env_value,
    validate_jwks,
)

__all__ = [
    "JWKS_VAR",
    "KeySetupResult",
    "KeySetupStatus",
    "PRIVATE_KEY_VAR",
    "SecretKeyPair",
    "b64url_uint",
    "ensure_jwt_keys",
    "generate",
    "private_key_env_value",
    "validate_jwks",
]
