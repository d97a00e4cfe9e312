"""Shared fixtures: a fixed-key engine and an in-memory record store."""
from typing import Any, Optional

import pytest

from access_vault.vault import (
    AuditEntry,
    CipherEngine,
    Credential,
    CredentialVault,
    OwningRecord,
    VaultConfig,
)

TEST_KEY = "unit-test-encryption-key-0123456789"
OWNER = "user-alice"
INTRUDER = "user-mallory"
RECORD_ID = "client-acme"
OTHER_RECORD_ID = "client-globex"


class FakeStore:
    """In-memory CredentialStore."""

    def __init__(self):
        self.records: dict[str, OwningRecord] = {}
        self.credentials: dict[str, Credential] = {}
        self.audit: list[AuditEntry] = []
        self.saves: list[tuple[str, dict[str, Any]]] = []
        self.fail_audit = False

    def add_record(self, record_id: str, owner: str, name: str) -> OwningRecord:
        record = OwningRecord(id=record_id, owner=owner, name=name)
        self.records[record_id] = record
        return record

    async def find_credential(self, credential_id: str) -> Optional[Credential]:
        return self.credentials.get(credential_id)

    async def find_owning_record(self, record_id: str) -> Optional[OwningRecord]:
        return self.records.get(record_id)

    async def list_credentials(self, record_id: str) -> list[Credential]:
        return [
            c for c in self.credentials.values() if c.owner_record_id == record_id
        ]

    async def insert_credential(self, credential: Credential) -> None:
        self.credentials[credential.id] = credential

    async def save_credential(self, credential_id: str, fields: dict[str, Any]) -> None:
        self.saves.append((credential_id, dict(fields)))
        current = self.credentials[credential_id]
        self.credentials[credential_id] = current.model_copy(update=fields)

    async def delete_credential(self, credential_id: str) -> None:
        del self.credentials[credential_id]

    async def append_audit_entry(self, entry: AuditEntry) -> None:
        if self.fail_audit:
            raise ConnectionError("audit table unavailable")
        self.audit.append(entry)


@pytest.fixture
def config():
    return VaultConfig(encryption_key=TEST_KEY)


@pytest.fixture
def engine(config):
    return CipherEngine(config)


@pytest.fixture
def store():
    fake = FakeStore()
    fake.add_record(RECORD_ID, OWNER, "Acme Corp")
    fake.add_record(OTHER_RECORD_ID, OWNER, "Globex")
    return fake


@pytest.fixture
def vault(store, engine):
    return CredentialVault(store, engine)
