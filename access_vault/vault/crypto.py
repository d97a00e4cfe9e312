"""
Vault Crypto Core — Key derivation, envelope encryption and parsing.

Secrets are sealed with an AEAD cipher under a key derived once from the
configured secret:

    HKDF-SHA256(VAULT_ENCRYPTION_KEY, key_context) → AES-GCM → envelope

Envelope format (stable for data at rest), lowercase hex segments:

    <nonce 12B>:<auth tag 16B>:<ciphertext>

Security Note:
    Never log plaintext or ciphertext values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
    Only the reveal gate may call ``CipherEngine.decrypt``.
"""
import os
import re
import logging
from typing import NamedTuple, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305

from ..exceptions import AuthenticationFailure, CipherFailure, CorruptEnvelope
from .config import VaultConfig

logger = logging.getLogger("access.vault")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM / Poly1305 tag
KEY_LENGTH = 32  # AES-256
ENVELOPE_SEPARATOR = ":"

_ENVELOPE_PATTERN = re.compile(
    rf"([0-9a-f]{{{NONCE_SIZE * 2}}}):([0-9a-f]{{{TAG_SIZE * 2}}}):((?:[0-9a-f]{{2}})+)"
)

_CIPHERS = {
    "aesgcm": AESGCM,
    "chacha20": ChaCha20Poly1305,
}


class Envelope(NamedTuple):
    nonce: bytes
    tag: bytes
    ciphertext: bytes

    def encode(self) -> str:
        return ENVELOPE_SEPARATOR.join(
            (self.nonce.hex(), self.tag.hex(), self.ciphertext.hex())
        )


def derive_key(seed: bytes, context: str) -> bytes:
    """Derive a 32-byte encryption key using HKDF-SHA256.

    Args:
        seed: Input key material (the configured encryption secret).
        context: Context string for domain separation.

    Returns:
        32-byte derived key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,  # deterministic: the same secret must always yield the same key
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


def is_envelope(value: Optional[str]) -> bool:
    """Exact shape check for a stored envelope."""
    return isinstance(value, str) and _ENVELOPE_PATTERN.fullmatch(value) is not None


def parse_envelope(value: str) -> Envelope:
    """Split an envelope into its nonce, tag and ciphertext.

    Raises:
        CorruptEnvelope: If value is not exactly ``<nonce>:<tag>:<ciphertext>``.
    """
    match = _ENVELOPE_PATTERN.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise CorruptEnvelope()
    nonce, tag, ciphertext = (bytes.fromhex(part) for part in match.groups())
    return Envelope(nonce, tag, ciphertext)


class CipherEngine:
    """Plaintext ↔ envelope transform under one process-wide key.

    The key is derived at construction and never changes afterwards; an
    engine built without a key refuses every operation with CipherFailure.
    """

    def __init__(self, config: VaultConfig):
        self._backend = config.cipher_backend
        self._aead = None
        if config.encryption_key is not None:
            key = derive_key(
                config.encryption_key.get_secret_value().encode("utf-8"),
                config.key_context,
            )
            self._aead = _CIPHERS[self._backend](key)

    @property
    def ready(self) -> bool:
        return self._aead is not None

    @property
    def backend(self) -> str:
        return self._backend

    def _cipher(self):
        if self._aead is None:
            raise CipherFailure("Encryption key not configured")
        return self._aead

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a secret into a new envelope.

        Each call uses a fresh random nonce, so the same plaintext never
        produces the same envelope twice.

        Args:
            plaintext: Non-empty secret.

        Returns:
            Envelope string safe for database storage.

        Raises:
            ValueError: If plaintext is empty.
            CipherFailure: If no key is configured or the primitive fails.
        """
        if not plaintext:
            raise ValueError("Cannot encrypt an empty secret")
        cipher = self._cipher()
        nonce = os.urandom(NONCE_SIZE)
        try:
            sealed = cipher.encrypt(nonce, plaintext.encode("utf-8"), None)
        except (ValueError, OverflowError) as err:
            logger.error(
                "Secret encryption failed: %s", type(err).__name__,
            )
            raise CipherFailure() from err
        return Envelope(nonce, sealed[-TAG_SIZE:], sealed[:-TAG_SIZE]).encode()

    def decrypt(self, envelope: str) -> str:
        """Verify and decrypt an envelope.

        Args:
            envelope: Value produced by ``encrypt``.

        Returns:
            Decrypted plaintext (handle with care!).

        Raises:
            CorruptEnvelope: If the envelope shape is wrong.
            AuthenticationFailure: If the tag does not verify.
            CipherFailure: If no key is configured.
        """
        parts = parse_envelope(envelope)
        cipher = self._cipher()
        try:
            plaintext = cipher.decrypt(parts.nonce, parts.ciphertext + parts.tag, None)
        except InvalidTag:
            raise AuthenticationFailure() from None
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise CorruptEnvelope("Secret envelope does not hold text") from None
