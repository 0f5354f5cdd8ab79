"""
Template Notifications - Domain Entities.

Templates and the audit records produced by each dispatch attempt.

Architecture Layer: Domain
Principles: Rich Domain Model, Entity Identity, Soft Delete
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator
import structlog

logger = structlog.get_logger(__name__)

RECIPIENT_DELIMITER = ","


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TemplateType(str, Enum):
    """Kinds of message a template can produce."""
    EMAIL = "email"
    SMS = "sms"


class NotificationStatus(str, Enum):
    """Terminal state of a dispatch attempt."""
    PENDING = "pending"
    SENT = "sent"
    CORE_FAILURE = "core_failure"
    PROVIDER_FAILURE = "provider_failure"


class Template(BaseModel):
    """
    Stored message skeleton.

    The body lives in the content store and is referenced by ``file_ref``.
    Once disabled a template is immutable and cannot be re-enabled.
    """
    template_id: UUID = Field(default_factory=uuid4, description="Storage primary key")
    identificator: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        description="Stable external identifier",
    )
    template_type: TemplateType = Field(default=TemplateType.EMAIL)
    sender: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, description="Unique across all templates")
    required_fields: list[str] = Field(default_factory=list)
    file_ref: str = Field(..., min_length=1, description="Content store file id")
    enabled: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("required_fields", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        return list(v) if isinstance(v, (list, tuple)) else [v]

    def apply_update(self, changes: dict[str, Any]) -> Template:
        """Return a copy with the partial update applied."""
        allowed = {k: v for k, v in changes.items() if k in TemplateChanges.UPDATABLE_FIELDS}
        return self.model_copy(update={**allowed, "updated_at": _utcnow()})

    def disable(self) -> Template:
        """Return a disabled copy of this template."""
        return self.model_copy(update={"enabled": False, "updated_at": _utcnow()})


class TemplateChanges(BaseModel):
    """Metadata changes requested for an existing template."""
    UPDATABLE_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"sender", "subject", "description", "required_fields", "file_ref"}
    )

    sender: str | None = None
    subject: str | None = None
    description: str | None = None
    required_fields: list[str] | None = None

    def to_update(self, file_ref: str | None = None) -> dict[str, Any]:
        """Build the partial update; None and empty strings leave a value unchanged."""
        update: dict[str, Any] = {}
        if self.sender:
            update["sender"] = self.sender
        if self.subject:
            update["subject"] = self.subject
        if self.description:
            update["description"] = self.description
        if self.required_fields is not None:
            update["required_fields"] = list(self.required_fields)
        if file_ref:
            update["file_ref"] = file_ref
        return update


class NotificationAttempt(BaseModel):
    """
    Immutable audit record of one dispatch try.

    Recipients are kept exactly as the caller supplied them; they are only
    flattened into a delimited string when converted to a storage record.
    """
    attempt_id: UUID = Field(default_factory=uuid4)
    template_ref: str = Field(..., min_length=1)
    recipients: str | list[str]
    status: NotificationStatus = Field(default=NotificationStatus.PENDING)
    response: str | None = None
    failure_detail: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = {"frozen": True}

    def serialized_recipients(self) -> str:
        if isinstance(self.recipients, str):
            return self.recipients
        return RECIPIENT_DELIMITER.join(self.recipients)

    def to_record(self) -> dict[str, Any]:
        """Storage representation of the attempt."""
        return {
            "attempt_id": str(self.attempt_id),
            "template_ref": self.template_ref,
            "recipients": self.serialized_recipients(),
            "status": self.status.value,
            "response": self.response,
            "failure_detail": self.failure_detail,
            "created_at": self.created_at,
        }
