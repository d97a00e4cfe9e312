"""
Vault records, request payloads and read projections.

Payload and view models speak the wire names used by the client access
endpoints (``accessType``, ``name``, ``password`` ...); Python code uses the
field names.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from .masking import mask
from .reconcile import SecretField


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


_WIRE_CONFIG = {"populate_by_name": True, "extra": "ignore"}


class OwningRecord(BaseModel):
    """Client record a credential belongs to."""

    id: str
    owner: str
    name: Optional[str] = None


class Credential(BaseModel):
    """Stored credential. ``secret_ciphertext`` is always an envelope or None."""

    id: str = Field(default_factory=new_id)
    owner_record_id: str
    kind: str = Field(min_length=1)
    display_name: Optional[str] = None
    url: Optional[str] = None
    username: Optional[str] = None
    port: Optional[str] = None
    notes: Optional[str] = None
    secret_ciphertext: Optional[str] = None
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def __repr__(self) -> str:
        return (
            f"<Credential id={self.id} record={self.owner_record_id} "
            f"kind={self.kind} secret={'set' if self.secret_ciphertext else 'absent'}>"
        )


# metadata a caller may change after creation
MUTABLE_FIELDS = ("kind", "display_name", "url", "username", "port", "notes")


class CredentialCreate(BaseModel):
    """Create payload."""

    kind: str = Field(alias="accessType", min_length=1)
    display_name: Optional[str] = Field(default=None, alias="name")
    url: Optional[str] = None
    username: Optional[str] = None
    secret: Optional[str] = Field(default=None, alias="password")
    port: Optional[str] = None
    notes: Optional[str] = None

    model_config = _WIRE_CONFIG

    def secret_field(self) -> SecretField:
        if "secret" not in self.model_fields_set:
            return SecretField.omitted()
        return SecretField.classify(self.secret)

    def metadata(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in MUTABLE_FIELDS}


class CredentialUpdate(BaseModel):
    """Partial update payload; only fields present in the body change."""

    kind: Optional[str] = Field(default=None, alias="accessType", min_length=1)
    display_name: Optional[str] = Field(default=None, alias="name")
    url: Optional[str] = None
    username: Optional[str] = None
    secret: Optional[str] = Field(default=None, alias="password")
    port: Optional[str] = None
    notes: Optional[str] = None

    model_config = _WIRE_CONFIG

    @model_validator(mode="after")
    def kind_not_cleared(self) -> "CredentialUpdate":
        if "kind" in self.model_fields_set and self.kind is None:
            raise ValueError("accessType cannot be cleared")
        return self

    def secret_field(self) -> SecretField:
        if "secret" not in self.model_fields_set:
            return SecretField.omitted()
        return SecretField.classify(self.secret)

    def changes(self) -> dict[str, Any]:
        """Metadata fields present in the payload."""
        return {
            name: getattr(self, name)
            for name in MUTABLE_FIELDS
            if name in self.model_fields_set
        }


class CredentialView(BaseModel):
    """Read projection: the secret is only ever the sentinel or None."""

    id: str
    owner_record_id: str = Field(alias="clientId")
    kind: str = Field(alias="accessType")
    display_name: Optional[str] = Field(default=None, alias="name")
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    port: Optional[str] = None
    notes: Optional[str] = None
    created_by: str = Field(alias="createdById")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_credential(cls, credential: Credential) -> "CredentialView":
        return cls(
            id=credential.id,
            owner_record_id=credential.owner_record_id,
            kind=credential.kind,
            display_name=credential.display_name,
            url=credential.url,
            username=credential.username,
            password=mask(credential.secret_ciphertext),
            port=credential.port,
            notes=credential.notes,
            created_by=credential.created_by,
            created_at=credential.created_at,
            updated_at=credential.updated_at,
        )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class AuditEntry(BaseModel):
    """One reveal of a plaintext secret."""

    principal: str
    credential_id: str
    owner_record_id: str
    kind: str
    display_name: Optional[str] = None
    record_name: Optional[str] = None
    operation: str = "reveal"
    timestamp: datetime = Field(default_factory=utcnow)


class RevealedSecret(BaseModel):
    """Result of an authorized reveal."""

    secret: Optional[str] = Field(default=None, alias="password")
    record_name: Optional[str] = Field(default=None, alias="clientName")
    kind: str = Field(alias="accessType")
    display_name: Optional[str] = Field(default=None, alias="accessName")

    model_config = {"populate_by_name": True}

    def __repr__(self) -> str:
        return f"<RevealedSecret kind={self.kind} name={self.display_name}>"

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
