"""
PostgreSQL record store for the credential vault.

Works with any asyncpg-compatible connection pool (``pool.acquire()`` async
context manager, ``$n`` placeholders).

Security Note:
    Never log ciphertext values. A non-null ``secret_ciphertext`` that is not
    a well-formed envelope is refused before any SQL runs.
"""
import logging
from typing import Any, Optional

from .vault.crypto import is_envelope
from .vault.models import AuditEntry, Credential, OwningRecord

logger = logging.getLogger("access.vault")

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_CREDENTIAL_COLUMNS = (
    "id, owner_record_id, kind, display_name, url, username, port, notes, "
    "secret_ciphertext, created_by, created_at, updated_at"
)

_SELECT_CREDENTIAL = f"""
SELECT {_CREDENTIAL_COLUMNS}
FROM vault.client_accesses
WHERE id = $1
"""

_SELECT_RECORD_CREDENTIALS = f"""
SELECT {_CREDENTIAL_COLUMNS}
FROM vault.client_accesses
WHERE owner_record_id = $1
ORDER BY created_at DESC
"""

_SELECT_RECORD = """
SELECT id, created_by AS owner, company_name AS name
FROM vault.clients
WHERE id = $1
"""

_INSERT_CREDENTIAL = f"""
INSERT INTO vault.client_accesses ({_CREDENTIAL_COLUMNS})
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
"""

_UPDATE_CREDENTIAL = """
UPDATE vault.client_accesses
SET kind = $2, display_name = $3, url = $4, username = $5, port = $6,
    notes = $7, secret_ciphertext = $8, updated_at = $9
WHERE id = $1
"""

_DELETE_CREDENTIAL = """
DELETE FROM vault.client_accesses
WHERE id = $1
"""

_INSERT_AUDIT = """
INSERT INTO vault.client_access_audit
    (principal, credential_id, owner_record_id, kind, display_name,
     record_name, operation, created_at)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
"""

# column order of _UPDATE_CREDENTIAL parameters $2..$9
_UPDATE_FIELDS = (
    "kind", "display_name", "url", "username", "port", "notes",
    "secret_ciphertext", "updated_at",
)


def _check_ciphertext(value: Optional[str]) -> None:
    if value is not None and not is_envelope(value):
        raise ValueError("Refusing to persist a secret that is not an envelope")


class PgCredentialStore:
    """CredentialStore over an asyncpg-compatible pool."""

    def __init__(self, db_pool: Any):
        self._db = db_pool

    async def find_credential(self, credential_id: str) -> Optional[Credential]:
        async with self._db.acquire() as conn:
            row = await conn.fetchrow(_SELECT_CREDENTIAL, credential_id)
        return Credential(**dict(row)) if row else None

    async def find_owning_record(self, record_id: str) -> Optional[OwningRecord]:
        async with self._db.acquire() as conn:
            row = await conn.fetchrow(_SELECT_RECORD, record_id)
        return OwningRecord(**dict(row)) if row else None

    async def list_credentials(self, record_id: str) -> list[Credential]:
        async with self._db.acquire() as conn:
            rows = await conn.fetch(_SELECT_RECORD_CREDENTIALS, record_id)
        return [Credential(**dict(row)) for row in rows]

    async def insert_credential(self, credential: Credential) -> None:
        _check_ciphertext(credential.secret_ciphertext)
        async with self._db.acquire() as conn:
            await conn.execute(
                _INSERT_CREDENTIAL,
                credential.id, credential.owner_record_id, credential.kind,
                credential.display_name, credential.url, credential.username,
                credential.port, credential.notes, credential.secret_ciphertext,
                credential.created_by, credential.created_at, credential.updated_at,
            )
        logger.debug("Stored access id=%s", credential.id)

    async def save_credential(self, credential_id: str, fields: dict[str, Any]) -> None:
        """Write the full mutable state of a credential.

        Raises:
            KeyError: If a mutable field is missing from ``fields``.
        """
        _check_ciphertext(fields["secret_ciphertext"])
        values = [fields[name] for name in _UPDATE_FIELDS]
        async with self._db.acquire() as conn:
            await conn.execute(_UPDATE_CREDENTIAL, credential_id, *values)
        logger.debug("Saved access id=%s", credential_id)

    async def delete_credential(self, credential_id: str) -> None:
        async with self._db.acquire() as conn:
            await conn.execute(_DELETE_CREDENTIAL, credential_id)

    async def append_audit_entry(self, entry: AuditEntry) -> None:
        async with self._db.acquire() as conn:
            await conn.execute(
                _INSERT_AUDIT,
                entry.principal, entry.credential_id, entry.owner_record_id,
                entry.kind, entry.display_name, entry.record_name,
                entry.operation, entry.timestamp,
            )
