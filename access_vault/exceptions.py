"""
Vault error taxonomy.

Every error carries a closed ``ErrorKind`` so callers translate errors by
kind instead of inspecting exception types.

Security Note:
    Messages never include plaintext, ciphertext or key material.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of vault failure kinds."""
    CIPHER_FAILURE = "cipher_failure"
    CORRUPT_ENVELOPE = "corrupt_envelope"
    AUTHENTICATION_FAILURE = "authentication_failure"
    NOT_FOUND = "not_found"
    NOT_AUTHENTICATED = "not_authenticated"
    DECRYPTION_UNAVAILABLE = "decryption_unavailable"


class VaultError(Exception):
    """Base class for all vault errors."""

    kind: ErrorKind = ErrorKind.CIPHER_FAILURE
    default_message: str = "Vault error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CipherFailure(VaultError):
    """Encryption could not be performed; nothing may be persisted."""
    kind = ErrorKind.CIPHER_FAILURE
    default_message = "Unable to encrypt secret"


class CorruptEnvelope(VaultError):
    """Stored value is not a well-formed envelope."""
    kind = ErrorKind.CORRUPT_ENVELOPE
    default_message = "Malformed secret envelope"


class AuthenticationFailure(VaultError):
    """Integrity tag did not verify (tampered data or wrong key)."""
    kind = ErrorKind.AUTHENTICATION_FAILURE
    default_message = "Secret envelope failed authentication"


class NotFound(VaultError):
    """Resource does not exist or is not owned by the principal."""
    kind = ErrorKind.NOT_FOUND
    default_message = "Access not found"


class NotAuthenticated(VaultError):
    """No principal was supplied with the request."""
    kind = ErrorKind.NOT_AUTHENTICATED
    default_message = "Authentication required"


class DecryptionUnavailable(VaultError):
    """Caller-visible reveal failure. Never carries cipher detail."""
    kind = ErrorKind.DECRYPTION_UNAVAILABLE
    default_message = "Unable to decrypt secret"
