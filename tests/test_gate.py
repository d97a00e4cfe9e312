"""
Tests for CredentialVault.

Tests cover:
- Create / list / get with masked secrets
- Update reconciliation through the service
- Ownership policy (mismatch reported as not found)
- Reveal: decrypt, audit, error translation
- Hard delete
"""
import logging
from datetime import datetime, timezone

import pytest

from access_vault.exceptions import (
    CipherFailure,
    DecryptionUnavailable,
    NotAuthenticated,
    NotFound,
)
from access_vault.vault import (
    SENTINEL,
    CipherEngine,
    CredentialCreate,
    CredentialUpdate,
    CredentialVault,
    VaultConfig,
)

from .conftest import INTRUDER, OTHER_RECORD_ID, OWNER, RECORD_ID


async def _create(vault, password="hunter2", **extra):
    body = {"accessType": "FTP", "name": "Main FTP", "username": "acme"}
    if password is not None:
        body["password"] = password
    body.update(extra)
    return await vault.create(RECORD_ID, OWNER, CredentialCreate.model_validate(body))


class TestCreate:

    @pytest.mark.asyncio
    async def test_secret_is_encrypted_and_masked(self, vault, store, engine):
        view = await _create(vault)
        assert view.password == SENTINEL
        stored = store.credentials[view.id]
        assert stored.secret_ciphertext != "hunter2"
        assert engine.decrypt(stored.secret_ciphertext) == "hunter2"
        assert stored.created_by == OWNER
        assert stored.owner_record_id == RECORD_ID

    @pytest.mark.asyncio
    @pytest.mark.parametrize("password", [None, "", SENTINEL])
    async def test_no_secret_stored(self, vault, store, password):
        view = await _create(vault, password=password)
        assert view.password is None
        assert store.credentials[view.id].secret_ciphertext is None

    @pytest.mark.asyncio
    async def test_requires_principal(self, vault, store):
        payload = CredentialCreate.model_validate({"accessType": "FTP"})
        with pytest.raises(NotAuthenticated):
            await vault.create(RECORD_ID, None, payload)
        assert store.credentials == {}

    @pytest.mark.asyncio
    async def test_foreign_record_is_not_found(self, vault, store):
        payload = CredentialCreate.model_validate({"accessType": "FTP", "password": "x"})
        with pytest.raises(NotFound):
            await vault.create(RECORD_ID, INTRUDER, payload)
        with pytest.raises(NotFound):
            await vault.create("no-such-client", OWNER, payload)
        assert store.credentials == {}

    @pytest.mark.asyncio
    async def test_encryption_failure_aborts_write(self, store):
        vault = CredentialVault(store, CipherEngine(VaultConfig()))
        with pytest.raises(CipherFailure):
            await _create(vault)
        assert store.credentials == {}


class TestReads:

    @pytest.mark.asyncio
    async def test_list_is_masked_and_newest_first(self, vault, store):
        first = await _create(vault, password="a")
        second = await _create(vault, password="a very long secret value")
        third = await _create(vault, password=None)
        for day, view in enumerate((first, second, third), start=1):
            store.credentials[view.id] = store.credentials[view.id].model_copy(
                update={"created_at": datetime(2025, 7, day, tzinfo=timezone.utc)}
            )
        views = await vault.list(RECORD_ID, OWNER)
        assert [v.id for v in views] == [third.id, second.id, first.id]
        assert [v.password for v in views] == [None, SENTINEL, SENTINEL]

    @pytest.mark.asyncio
    async def test_list_foreign_record_is_not_found(self, vault):
        await _create(vault)
        with pytest.raises(NotFound):
            await vault.list(RECORD_ID, INTRUDER)

    @pytest.mark.asyncio
    async def test_get_never_exposes_ciphertext(self, vault, store):
        view = await _create(vault)
        fetched = await vault.get(view.id, OWNER, record_id=RECORD_ID)
        data = fetched.to_json()
        assert data["password"] == SENTINEL
        assert store.credentials[view.id].secret_ciphertext not in data.values()
        assert "secret_ciphertext" not in data

    @pytest.mark.asyncio
    async def test_get_wrong_record_is_not_found(self, vault):
        view = await _create(vault)
        with pytest.raises(NotFound):
            await vault.get(view.id, OWNER, record_id=OTHER_RECORD_ID)


class TestUpdate:

    async def _update(self, vault, credential_id, body):
        return await vault.update(
            credential_id, OWNER, CredentialUpdate.model_validate(body),
        )

    @pytest.mark.asyncio
    async def test_sentinel_keeps_secret(self, vault, store, engine):
        view = await _create(vault)
        before = store.credentials[view.id].secret_ciphertext
        updated = await self._update(vault, view.id, {"password": SENTINEL, "notes": "n"})
        after = store.credentials[view.id]
        assert after.secret_ciphertext == before
        assert engine.decrypt(after.secret_ciphertext) == "hunter2"
        assert after.notes == "n"
        assert updated.password == SENTINEL

    @pytest.mark.asyncio
    async def test_omitted_keeps_secret(self, vault, store):
        view = await _create(vault)
        before = store.credentials[view.id].secret_ciphertext
        await self._update(vault, view.id, {"url": "ftp://acme.test"})
        after = store.credentials[view.id]
        assert after.secret_ciphertext == before
        assert after.url == "ftp://acme.test"
        assert after.username == "acme"

    @pytest.mark.asyncio
    async def test_empty_clears_secret(self, vault, store):
        view = await _create(vault)
        updated = await self._update(vault, view.id, {"password": ""})
        assert store.credentials[view.id].secret_ciphertext is None
        assert updated.password is None

    @pytest.mark.asyncio
    async def test_new_value_rotates_secret(self, vault, store, engine):
        view = await _create(vault)
        await self._update(vault, view.id, {"password": "newpass"})
        assert engine.decrypt(store.credentials[view.id].secret_ciphertext) == "newpass"

    @pytest.mark.asyncio
    async def test_full_state_written(self, vault, store):
        view = await _create(vault)
        await self._update(vault, view.id, {"accessType": "ADMIN_PANEL"})
        credential_id, fields = store.saves[-1]
        assert credential_id == view.id
        assert fields["kind"] == "ADMIN_PANEL"
        assert fields["display_name"] == "Main FTP"
        assert "secret_ciphertext" in fields
        assert "updated_at" in fields

    @pytest.mark.asyncio
    async def test_cipher_failure_leaves_store_untouched(self, store, engine):
        seeded = CredentialVault(store, engine)
        view = await _create(seeded)
        before = store.credentials[view.id]
        broken = CredentialVault(store, CipherEngine(VaultConfig()))
        with pytest.raises(CipherFailure):
            await broken.update(
                view.id, OWNER, CredentialUpdate.model_validate({"password": "newpass"}),
            )
        assert store.credentials[view.id] == before
        assert store.saves == []

    @pytest.mark.asyncio
    async def test_intruder_cannot_update(self, vault, store):
        view = await _create(vault)
        with pytest.raises(NotFound):
            await vault.update(
                view.id, INTRUDER, CredentialUpdate.model_validate({"password": "x"}),
            )
        assert store.saves == []


class TestDelete:

    @pytest.mark.asyncio
    async def test_hard_delete(self, vault, store):
        view = await _create(vault)
        await vault.delete(view.id, OWNER, record_id=RECORD_ID)
        assert view.id not in store.credentials
        with pytest.raises(NotFound):
            await vault.get(view.id, OWNER)

    @pytest.mark.asyncio
    async def test_intruder_cannot_delete(self, vault, store):
        view = await _create(vault)
        with pytest.raises(NotFound):
            await vault.delete(view.id, INTRUDER)
        assert view.id in store.credentials


class TestReveal:

    @pytest.mark.asyncio
    async def test_reveal_returns_plaintext_and_audits(self, vault, store):
        view = await _create(vault)
        revealed = await vault.reveal(view.id, OWNER, record_id=RECORD_ID)
        assert revealed.secret == "hunter2"
        assert revealed.record_name == "Acme Corp"
        assert revealed.kind == "FTP"
        assert revealed.display_name == "Main FTP"
        assert len(store.audit) == 1
        entry = store.audit[0]
        assert entry.principal == OWNER
        assert entry.credential_id == view.id
        assert entry.owner_record_id == RECORD_ID
        assert entry.operation == "reveal"

    @pytest.mark.asyncio
    async def test_each_reveal_audited_once(self, vault, store):
        view = await _create(vault)
        await vault.reveal(view.id, OWNER)
        await vault.reveal(view.id, OWNER)
        assert len(store.audit) == 2

    @pytest.mark.asyncio
    async def test_reveal_without_secret(self, vault, store):
        view = await _create(vault, password=None)
        revealed = await vault.reveal(view.id, OWNER)
        assert revealed.secret is None
        assert len(store.audit) == 1

    @pytest.mark.asyncio
    async def test_intruder_and_missing_look_the_same(self, vault, store):
        view = await _create(vault)
        with pytest.raises(NotFound) as foreign:
            await vault.reveal(view.id, INTRUDER)
        with pytest.raises(NotFound) as missing:
            await vault.reveal("no-such-access", INTRUDER)
        assert type(foreign.value) is type(missing.value)
        assert str(foreign.value) == str(missing.value)
        assert store.audit == []

    @pytest.mark.asyncio
    async def test_wrong_record_is_not_found(self, vault):
        view = await _create(vault)
        with pytest.raises(NotFound):
            await vault.reveal(view.id, OWNER, record_id=OTHER_RECORD_ID)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("principal", [None, ""])
    async def test_missing_principal(self, vault, store, principal):
        view = await _create(vault)
        with pytest.raises(NotAuthenticated):
            await vault.reveal(view.id, principal)
        with pytest.raises(NotAuthenticated):
            await vault.reveal("no-such-access", principal)
        assert store.audit == []

    @pytest.mark.asyncio
    async def test_tampered_envelope(self, vault, store, caplog):
        view = await _create(vault)
        stored = store.credentials[view.id]
        nonce, tag, body = stored.secret_ciphertext.split(":")
        tag = ("0" if tag[0] != "0" else "1") + tag[1:]
        store.credentials[view.id] = stored.model_copy(
            update={"secret_ciphertext": f"{nonce}:{tag}:{body}"}
        )
        with caplog.at_level(logging.ERROR, logger="access.vault"):
            with pytest.raises(DecryptionUnavailable) as exc:
                await vault.reveal(view.id, OWNER)
        assert exc.value.__cause__ is None
        assert exc.value.__suppress_context__ is True
        assert any(r.levelno == logging.CRITICAL for r in caplog.records)
        assert store.audit == []

    @pytest.mark.asyncio
    async def test_corrupt_envelope(self, vault, store, caplog):
        view = await _create(vault)
        store.credentials[view.id] = store.credentials[view.id].model_copy(
            update={"secret_ciphertext": "not-an-envelope"}
        )
        with caplog.at_level(logging.ERROR, logger="access.vault"):
            with pytest.raises(DecryptionUnavailable):
                await vault.reveal(view.id, OWNER)
        levels = {r.levelno for r in caplog.records}
        assert logging.ERROR in levels
        assert logging.CRITICAL not in levels

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable(self, vault, store):
        view = await _create(vault)
        keyless = CredentialVault(store, CipherEngine(VaultConfig()))
        with pytest.raises(DecryptionUnavailable):
            await keyless.reveal(view.id, OWNER)

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_block_reveal(self, vault, store, caplog):
        view = await _create(vault)
        store.fail_audit = True
        with caplog.at_level(logging.ERROR, logger="access.vault"):
            revealed = await vault.reveal(view.id, OWNER)
        assert revealed.secret == "hunter2"
        assert "Failed to write reveal audit" in caplog.text

    @pytest.mark.asyncio
    async def test_plaintext_never_logged(self, vault, caplog):
        view = await _create(vault)
        with caplog.at_level(logging.DEBUG, logger="access.vault"):
            await vault.reveal(view.id, OWNER)
        assert "hunter2" not in caplog.text
