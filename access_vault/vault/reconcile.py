"""
Secret update reconciliation.

A submitted secret field is classified once, at the request boundary, into
one of four actions and the next stored envelope is computed from that:

    OMITTED   → keep the stored envelope
    SENTINEL  → keep the stored envelope (client echoed the mask back)
    CLEARED   → drop the secret
    NEW_VALUE → encrypt and replace

Classifying the sentinel before anything is encrypted is what keeps the
literal mask text from ever overwriting a real secret.
"""
from enum import Enum
from typing import NamedTuple, Optional

from .crypto import CipherEngine
from .masking import is_sentinel


class FieldAction(str, Enum):
    OMITTED = "omitted"
    SENTINEL = "sentinel"
    CLEARED = "cleared"
    NEW_VALUE = "new_value"


class SecretField(NamedTuple):
    """Tagged secret field; ``value`` is set only for NEW_VALUE."""

    action: FieldAction
    value: Optional[str] = None

    @classmethod
    def omitted(cls) -> "SecretField":
        return cls(FieldAction.OMITTED)

    @classmethod
    def classify(cls, raw: Optional[str]) -> "SecretField":
        """Classify a secret value that is present in the payload.

        An explicit null is treated like the empty string.
        """
        if raw is None or raw == "":
            return cls(FieldAction.CLEARED)
        if is_sentinel(raw):
            return cls(FieldAction.SENTINEL)
        return cls(FieldAction.NEW_VALUE, raw)

    def __repr__(self) -> str:
        # never echo the plaintext
        return f"SecretField(action={self.action.value})"


def reconcile(
    previous: Optional[str],
    field: SecretField,
    engine: CipherEngine,
) -> Optional[str]:
    """Compute the next stored envelope.

    Args:
        previous: Currently stored envelope, or None.
        field: Classified secret field from the request.
        engine: Cipher engine used for NEW_VALUE.

    Returns:
        The envelope to store, or None when no secret remains.

    Raises:
        CipherFailure: If a new value cannot be encrypted; the caller must
            abort the write.
    """
    if field.action in (FieldAction.OMITTED, FieldAction.SENTINEL):
        return previous
    if field.action is FieldAction.CLEARED:
        return None
    return engine.encrypt(field.value)
