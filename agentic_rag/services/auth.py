# =============================================================================
# Auth Service - API Key Generation & Hashing
# =============================================================================
#
# Pure functions for API key management. No FastAPI dependency; used by the
# auth dependency, the key generation script, and tests.
#
# Keys are never stored in clear. Configuration maps the SHA-256 digest of
# each key to the owner id whose documents that key may search:
#
#   API_KEYS='{"<sha256 hex>": "team-finance"}'
#
# API keys are 32-byte random tokens (256 bits of entropy), so a plain
# SHA-256 digest is sufficient; no per-key salt or slow hash is needed.
# =============================================================================

from __future__ import annotations

import hashlib
import secrets

KEY_PREFIX = "ars-"


def generate_api_key() -> tuple[str, str, str]:
    """
    Generate a new API key.

    Returns:
        (raw_key, key_prefix, key_hash):
        - raw_key: Full key to hand to the caller (only visible once)
        - key_prefix: First 8 chars for identification in logs
        - key_hash: SHA-256 hex digest to put in the API_KEYS setting
    """
    raw_key = f"{KEY_PREFIX}{secrets.token_hex(32)}"
    key_prefix = raw_key[:8]
    key_hash = hash_api_key(raw_key)
    return raw_key, key_prefix, key_hash


def hash_api_key(raw_key: str) -> str:
    """Hash an API key using SHA-256. Returns 64-char hex digest."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


def api_keys_entry(key_hash: str, owner_id: str) -> dict[str, str]:
    """Build the API_KEYS mapping fragment for one key."""
    if not owner_id.strip():
        raise ValueError("owner_id must not be blank")
    return {key_hash: owner_id}
