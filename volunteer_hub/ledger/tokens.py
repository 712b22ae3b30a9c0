"""Registration token issuance.

A token is the only credential a volunteer needs to view or change their
registration, so it has to be unguessable. It is drawn from ``secrets``
and hex-encoded in full: the default 8-byte draw gives 16 characters and
64 bits of entropy, with nothing truncated after encoding.
"""

import secrets

from volunteer_hub.core.config import settings

MIN_TOKEN_BYTES = 8


def generate_token(nbytes: int | None = None) -> str:
    """Return a fresh lowercase hexadecimal token of ``2 * nbytes`` characters."""
    nbytes = nbytes or settings.token_bytes
    if nbytes < MIN_TOKEN_BYTES:
        raise ValueError(f"Tokens need at least {MIN_TOKEN_BYTES} random bytes, got {nbytes}")
    return secrets.token_hex(nbytes)
