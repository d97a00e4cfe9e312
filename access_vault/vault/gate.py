"""
CredentialVault — Authorized access to client credentials.

Provides the public API of the vault:
- ``create(record_id, principal, payload)`` — store a new credential
- ``list(record_id, principal)`` / ``get(credential_id, principal)`` — masked reads
- ``update(credential_id, principal, payload)`` — reconcile and persist
- ``delete(credential_id, principal)`` — hard delete
- ``reveal(credential_id, principal)`` — decrypt, audit and return plaintext

Every operation checks that the principal owns the client record. A
credential the principal does not own is reported exactly like one that
does not exist.

Security Note:
    Never log plaintext or ciphertext values. Only log credential ids,
    kinds and principals. ``reveal`` is the only caller of
    ``CipherEngine.decrypt``.
"""
import logging
from typing import Optional

from ..exceptions import (
    DecryptionUnavailable,
    ErrorKind,
    NotAuthenticated,
    NotFound,
    VaultError,
)
from .crypto import CipherEngine
from .models import (
    MUTABLE_FIELDS,
    AuditEntry,
    Credential,
    CredentialCreate,
    CredentialUpdate,
    CredentialView,
    OwningRecord,
    RevealedSecret,
    utcnow,
)
from .reconcile import reconcile
from .store import CredentialStore

logger = logging.getLogger("access.vault")

# cipher failures surfaced by reveal, with the level they are logged at
_REVEAL_FAILURES = {
    ErrorKind.CIPHER_FAILURE: logging.ERROR,
    ErrorKind.CORRUPT_ENVELOPE: logging.ERROR,
    ErrorKind.AUTHENTICATION_FAILURE: logging.CRITICAL,
}


def require_principal(principal: Optional[str]) -> str:
    if not principal:
        raise NotAuthenticated()
    return principal


class CredentialVault:
    """Credential operations bound to a record store and a cipher engine."""

    def __init__(self, store: CredentialStore, engine: CipherEngine):
        self._store = store
        self._engine = engine

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    async def _owned_record(self, record_id: str, principal: str) -> OwningRecord:
        record = await self._store.find_owning_record(record_id)
        if record is None or record.owner != principal:
            raise NotFound()
        return record

    async def _owned_credential(
        self,
        credential_id: str,
        principal: str,
        record_id: Optional[str] = None,
    ) -> tuple[Credential, OwningRecord]:
        """Resolve a credential and its owning record for the principal.

        Raises:
            NotFound: If the credential is missing, belongs to another
                record than ``record_id`` or to a record the principal
                does not own.
        """
        credential = await self._store.find_credential(credential_id)
        if credential is None:
            raise NotFound()
        if record_id is not None and credential.owner_record_id != record_id:
            raise NotFound()
        record = await self._owned_record(credential.owner_record_id, principal)
        return credential, record

    # ------------------------------------------------------------------
    # Audit helper
    # ------------------------------------------------------------------

    async def _audit(
        self,
        principal: str,
        credential: Credential,
        record: OwningRecord,
    ) -> None:
        """Record a reveal. Failures are logged, never raised."""
        entry = AuditEntry(
            principal=principal,
            credential_id=credential.id,
            owner_record_id=record.id,
            kind=credential.kind,
            display_name=credential.display_name,
            record_name=record.name,
        )
        try:
            await self._store.append_audit_entry(entry)
        except Exception as err:
            logger.error(
                "Failed to write reveal audit for access=%s principal=%s: %s",
                credential.id, principal, err,
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create(
        self,
        record_id: str,
        principal: Optional[str],
        payload: CredentialCreate,
    ) -> CredentialView:
        """Store a new credential for a client record.

        The secret, if any, is encrypted before anything is written.

        Raises:
            NotAuthenticated: If no principal is given.
            NotFound: If the record is missing or not owned by principal.
            CipherFailure: If the secret cannot be encrypted.
        """
        principal = require_principal(principal)
        await self._owned_record(record_id, principal)
        credential = Credential(
            owner_record_id=record_id,
            secret_ciphertext=reconcile(None, payload.secret_field(), self._engine),
            created_by=principal,
            **payload.metadata(),
        )
        await self._store.insert_credential(credential)
        logger.info(
            "Access created: id=%s record=%s kind=%s by=%s",
            credential.id, record_id, credential.kind, principal,
        )
        return CredentialView.from_credential(credential)

    async def list(self, record_id: str, principal: Optional[str]) -> list[CredentialView]:
        """Masked credentials of a record, newest first."""
        principal = require_principal(principal)
        await self._owned_record(record_id, principal)
        credentials = await self._store.list_credentials(record_id)
        credentials.sort(key=lambda c: c.created_at, reverse=True)
        return [CredentialView.from_credential(c) for c in credentials]

    async def get(
        self,
        credential_id: str,
        principal: Optional[str],
        record_id: Optional[str] = None,
    ) -> CredentialView:
        """Masked single credential."""
        principal = require_principal(principal)
        credential, _ = await self._owned_credential(credential_id, principal, record_id)
        return CredentialView.from_credential(credential)

    async def update(
        self,
        credential_id: str,
        principal: Optional[str],
        payload: CredentialUpdate,
        record_id: Optional[str] = None,
    ) -> CredentialView:
        """Apply a partial update.

        The full next state is computed first and written in one call; an
        encryption failure aborts before the store is touched.
        """
        principal = require_principal(principal)
        credential, _ = await self._owned_credential(credential_id, principal, record_id)
        secret = payload.secret_field()
        fields = {name: getattr(credential, name) for name in MUTABLE_FIELDS}
        fields.update(payload.changes())
        fields["secret_ciphertext"] = reconcile(
            credential.secret_ciphertext, secret, self._engine,
        )
        fields["updated_at"] = utcnow()
        await self._store.save_credential(credential.id, fields)
        logger.info(
            "Access updated: id=%s secret=%s by=%s",
            credential.id, secret.action.value, principal,
        )
        return CredentialView.from_credential(credential.model_copy(update=fields))

    async def delete(
        self,
        credential_id: str,
        principal: Optional[str],
        record_id: Optional[str] = None,
    ) -> None:
        principal = require_principal(principal)
        credential, _ = await self._owned_credential(credential_id, principal, record_id)
        await self._store.delete_credential(credential.id)
        logger.info("Access deleted: id=%s by=%s", credential.id, principal)

    async def reveal(
        self,
        credential_id: str,
        principal: Optional[str],
        record_id: Optional[str] = None,
    ) -> RevealedSecret:
        """Decrypt a credential's secret for its owner.

        Every successful reveal is paired with an audit attempt made before
        the plaintext is returned.

        Args:
            credential_id: Credential to reveal.
            principal: Authenticated principal id.
            record_id: Optional client record the credential must belong to.

        Returns:
            RevealedSecret; ``secret`` is None when nothing is stored.

        Raises:
            NotAuthenticated: If no principal is given.
            NotFound: If the credential is missing or not owned.
            DecryptionUnavailable: If the stored envelope cannot be decrypted.
        """
        principal = require_principal(principal)
        credential, record = await self._owned_credential(
            credential_id, principal, record_id,
        )
        plaintext = None
        if credential.secret_ciphertext:
            try:
                plaintext = self._engine.decrypt(credential.secret_ciphertext)
            except VaultError as err:
                level = _REVEAL_FAILURES.get(err.kind)
                if level is None:
                    raise
                logger.log(
                    level,
                    "Cannot decrypt access=%s record=%s: %s",
                    credential.id, record.id, err.kind.value,
                )
                raise DecryptionUnavailable() from None

        await self._audit(principal, credential, record)
        logger.info(
            "Principal %s revealed %s access (%s) of client %s (id=%s)",
            principal, credential.kind, credential.display_name or "unnamed",
            record.name, record.id,
        )
        return RevealedSecret(
            secret=plaintext,
            record_name=record.name,
            kind=credential.kind,
            display_name=credential.display_name,
        )
