"""
Vault Configuration — Encryption key loading and validated settings.

Reads the vault settings from environment variables:
    VAULT_ENCRYPTION_KEY = <secret, at least 16 characters>
    VAULT_CIPHER_BACKEND = aesgcm | chacha20   (default: aesgcm)
    VAULT_KEY_CONTEXT    = <HKDF info string>  (default: access-vault-v1)

The configuration is built once at process start and injected into the
cipher engine; it is immutable afterwards.

Security Note:
    Never log key material. Only log the backend and context names.
"""
import os
import base64
import secrets
import logging
from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

logger = logging.getLogger("access.vault")

MIN_KEY_LENGTH = 16
DEFAULT_KEY_CONTEXT = "access-vault-v1"
CIPHER_BACKENDS = ("aesgcm", "chacha20")


def generate_encryption_key() -> str:
    """Generate a random 32-byte key and return it as a base64 string.

    This is a utility for operators to generate a VAULT_ENCRYPTION_KEY.

    Returns:
        Base64-encoded 32-byte key string.
    """
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


class VaultConfig(BaseModel):
    """Validated vault configuration.

    ``encryption_key`` may be absent: the engine then refuses every
    cipher operation instead of falling back to a default key.
    """

    encryption_key: Optional[SecretStr] = None
    cipher_backend: str = Field(default="aesgcm")
    key_context: str = Field(default=DEFAULT_KEY_CONTEXT, min_length=1)

    model_config = {"frozen": True}

    @field_validator("encryption_key")
    @classmethod
    def validate_key(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Reject keys too short to be a real secret."""
        if v is not None and len(v.get_secret_value()) < MIN_KEY_LENGTH:
            raise ValueError(
                f"encryption_key must be at least {MIN_KEY_LENGTH} characters"
            )
        return v

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in CIPHER_BACKENDS:
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @property
    def has_key(self) -> bool:
        return self.encryption_key is not None

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        An empty VAULT_ENCRYPTION_KEY is treated as absent.

        Returns:
            Populated VaultConfig instance.
        """
        raw_key = os.environ.get("VAULT_ENCRYPTION_KEY") or None
        config = cls(
            encryption_key=raw_key,
            cipher_backend=os.environ.get("VAULT_CIPHER_BACKEND", "aesgcm"),
            key_context=os.environ.get("VAULT_KEY_CONTEXT", DEFAULT_KEY_CONTEXT),
        )
        if not config.has_key:
            logger.warning(
                "VAULT_ENCRYPTION_KEY is not set; credential secrets cannot be stored"
            )
        logger.debug(
            "Vault config loaded: backend=%s context=%s",
            config.cipher_backend, config.key_context,
        )
        return config
