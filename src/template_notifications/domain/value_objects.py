"""
Template Notifications - Value Objects.

Discriminated result values returned by every collaborator call and by the
use cases themselves. Orchestration code branches on these fields instead of
catching exceptions raised from I/O.

Architecture Layer: Domain
Principles: Immutable Value Objects, Explicit Results
"""
from __future__ import annotations

from pydantic import BaseModel, Field

from .entities import NotificationStatus


class UploadResult(BaseModel):
    """Outcome of uploading a local file to the content store."""
    success: bool
    file_id: str | None = Field(default=None, description="Content store id of the uploaded file")
    error: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def ok(cls, file_id: str) -> UploadResult:
        return cls(success=True, file_id=file_id)

    @classmethod
    def failed(cls, error: str) -> UploadResult:
        return cls(success=False, error=error)


class ContentResult(BaseModel):
    """Outcome of fetching a stored template body."""
    success: bool
    content: str | None = None
    error: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def ok(cls, content: str) -> ContentResult:
        return cls(success=True, content=content)

    @classmethod
    def failed(cls, error: str) -> ContentResult:
        return cls(success=False, content="", error=error)


class DeliveryResult(BaseModel):
    """Outcome reported by a delivery provider."""
    status: NotificationStatus
    response: str | None = Field(default=None, description="Raw provider response")
    failure_detail: str | None = None

    model_config = {"frozen": True}

    @property
    def sent(self) -> bool:
        return self.status == NotificationStatus.SENT


class RenderResult(BaseModel):
    """Outcome of substituting fields into a template body."""
    success: bool
    content: str = ""
    error: str | None = None

    model_config = {"frozen": True}


class DispatchResult(BaseModel):
    """Result returned to the caller of a dispatch."""
    sent: bool


class UpdateResult(BaseModel):
    """Result of a template update."""
    updated: bool


class StoreResult(BaseModel):
    """Result of registering a new template."""
    stored: bool
    identificator: str = ""


class DisableResult(BaseModel):
    """Result of disabling a template."""
    disabled: bool
