from Crypto.Hash import SHA256 # PyCryptodome
import config # Import config for display name settings
from typing import Optional
import time
import logging # Use logging

# --- Utility Functions ---

def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def key_fingerprint(public_key: Optional[str]) -> str:
    """
    Short SHA-256 fingerprint of a public key, formatted as colon-separated pairs.
    Used wherever a key has to be identified in logs; key material itself is never logged.
    """
    if not public_key:
        return "<none>"
    digest = SHA256.new(public_key.encode('utf-8')).hexdigest()
    return ':'.join(digest[i:i+2] for i in range(0, 16, 2))


def display_name_for(alias: Optional[str], signing_public: str, prefix_len: int = config.DISPLAY_NAME_KEY_PREFIX) -> str:
    """
    Human-readable alias for an exported credential.
    Falls back to a truncated signing public key when the account has no alias.
    """
    if alias:
        return alias
    logging.debug(f"No alias available, using first {prefix_len} chars of signing key as display name.")
    return signing_public[:prefix_len]


def secret_digest(secret: str) -> str:
    """
    Full SHA-256 hex digest of a private key string.
    Lets a registry recognise a private key without ever storing it.
    """
    return SHA256.new(secret.encode('utf-8')).hexdigest()
