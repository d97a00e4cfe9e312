"""Credential Vault — Encrypted client credentials with audited reveal.

Security Note (Threat Model):
    A revealed plaintext exists in process memory for the lifetime of the
    request that produced it. A memory dump taken during a reveal could
    expose it. This is an accepted limitation — mitigation requires
    HSM/secure enclave integration which is out of scope.
"""

from .config import VaultConfig, generate_encryption_key
from .crypto import CipherEngine, is_envelope
from .masking import SENTINEL, is_sentinel, mask
from .reconcile import FieldAction, SecretField, reconcile
from .models import (
    AuditEntry,
    Credential,
    CredentialCreate,
    CredentialUpdate,
    CredentialView,
    OwningRecord,
    RevealedSecret,
)
from .store import CredentialStore
from .gate import CredentialVault

__all__ = [
    "VaultConfig",
    "generate_encryption_key",
    "CipherEngine",
    "is_envelope",
    "SENTINEL",
    "is_sentinel",
    "mask",
    "FieldAction",
    "SecretField",
    "reconcile",
    "AuditEntry",
    "Credential",
    "CredentialCreate",
    "CredentialUpdate",
    "CredentialView",
    "OwningRecord",
    "RevealedSecret",
    "CredentialStore",
    "CredentialVault",
]
