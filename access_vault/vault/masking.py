"""
Secret masking.

Read paths never return ciphertext: a stored secret is projected to a fixed
sentinel whose value does not depend on the secret's content or length.
"""
from typing import Optional

# eight U+2022 BULLET characters
SENTINEL = "•" * 8


def mask(envelope: Optional[str]) -> Optional[str]:
    """Return the sentinel when a secret is stored, None otherwise."""
    return SENTINEL if envelope else None


def is_sentinel(candidate: object) -> bool:
    """Exact match against the sentinel.

    A user who types the sentinel by hand is indistinguishable from a
    client echoing the masked value back.
    """
    return isinstance(candidate, str) and candidate == SENTINEL
