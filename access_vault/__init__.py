"""Access Vault.

Encrypted storage of third-party client credentials with masked reads and
audited, owner-only reveal.
"""
from .version import __version__
from .exceptions import (
    AuthenticationFailure,
    CipherFailure,
    CorruptEnvelope,
    DecryptionUnavailable,
    ErrorKind,
    NotAuthenticated,
    NotFound,
    VaultError,
)
from .vault import (
    SENTINEL,
    CipherEngine,
    CredentialVault,
    VaultConfig,
    is_sentinel,
    mask,
)

__all__ = [
    "__version__",
    "AuthenticationFailure",
    "CipherFailure",
    "CorruptEnvelope",
    "DecryptionUnavailable",
    "ErrorKind",
    "NotAuthenticated",
    "NotFound",
    "VaultError",
    "SENTINEL",
    "CipherEngine",
    "CredentialVault",
    "VaultConfig",
    "is_sentinel",
    "mask",
]
