"""Record store boundary consumed by the vault."""
from typing import Any, Optional, Protocol

from .models import AuditEntry, Credential, OwningRecord


class CredentialStore(Protocol):
    """Persistence for credentials, their owning records and reveal audit.

    Implementations must write ``secret_ciphertext`` exactly as given and
    delete rows for real (no soft delete).
    """

    async def find_credential(self, credential_id: str) -> Optional[Credential]:
        ...

    async def find_owning_record(self, record_id: str) -> Optional[OwningRecord]:
        ...

    async def list_credentials(self, record_id: str) -> list[Credential]:
        ...

    async def insert_credential(self, credential: Credential) -> None:
        ...

    async def save_credential(self, credential_id: str, fields: dict[str, Any]) -> None:
        ...

    async def delete_credential(self, credential_id: str) -> None:
        ...

    async def append_audit_entry(self, entry: AuditEntry) -> None:
        ...
