"""
Template Notifications - Template Management.

Registration, update and soft deletion of templates. Each operation touches
two independent systems, the template repository and the remote content
store, so remote files are only referenced after a durable upload and are
removed again (compensated) when the repository write fails.

Architecture Layer: Domain
Principles: Saga Pattern, Compensating Actions, Constructor Injection
"""
from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from .entities import Template, TemplateChanges, TemplateType
from .errors import (
    TemplateDisabledError,
    TemplateDuplicatedError,
    TemplateNotFoundError,
    TemplateTypeNotAllowedError,
    UploadFailedError,
)
from .providers import ContentStore
from .value_objects import DisableResult, StoreResult, UpdateResult

if TYPE_CHECKING:
    from ..infrastructure.repository import TemplateRepository

logger = structlog.get_logger(__name__)


class TemplateService:
    """Keeps template records and their stored bodies consistent."""

    def __init__(
        self,
        template_repository: TemplateRepository,
        content_store: ContentStore,
    ) -> None:
        self._templates = template_repository
        self._content = content_store

    async def get(self, template_ref: str) -> Template:
        """Get a template, enabled or not."""
        template = await self._templates.find_by_ref(template_ref)
        if template is None:
            raise TemplateNotFoundError(template_ref)
        return template

    async def store(
        self,
        template_type: TemplateType | str,
        sender: str,
        subject: str,
        description: str,
        required_fields: list[str],
        file_path: str,
    ) -> StoreResult:
        """
        Register a new template and upload its body.

        Raises:
            TemplateTypeNotAllowedError: Unsupported template type
            TemplateDuplicatedError: Description already in use
            UploadFailedError: The content store rejected the file
        """
        try:
            kind = TemplateType(template_type)
        except ValueError:
            raise TemplateTypeNotAllowedError(template_type) from None

        if await self._templates.find_by_description(description) is not None:
            raise TemplateDuplicatedError(description)

        upload = await self._content.upload(file_path)
        if not upload.success or not upload.file_id:
            logger.warning("template_upload_failed", error=upload.error)
            raise UploadFailedError(upload.error)

        template = Template(
            template_type=kind,
            sender=sender,
            subject=subject,
            description=description,
            required_fields=required_fields,
            file_ref=upload.file_id,
        )
        try:
            stored = await self._templates.store(template)
        except Exception:
            logger.error("template_store_failed", file_ref=upload.file_id)
            await self._safe_delete(upload.file_id, reason="rollback")
            raise

        logger.info("template_stored", identificator=stored.identificator,
                    template_type=kind.value)
        return StoreResult(stored=True, identificator=stored.identificator)

    async def update(
        self,
        template_ref: str,
        changes: TemplateChanges,
        new_file_path: str | None = None,
    ) -> UpdateResult:
        """
        Update template metadata and optionally replace its body file.

        With a new file the sequence is upload, repository update, then
        deletion of the old file. If the repository update fails the new
        file is deleted instead. Deletes are best-effort and never raise.

        Raises:
            TemplateNotFoundError: No template with this reference
            TemplateDisabledError: The template has been disabled
            TemplateDuplicatedError: Description used by another template
            UploadFailedError: The new file could not be uploaded
        """
        current = await self._templates.find_by_ref(template_ref)
        if current is None:
            raise TemplateNotFoundError(template_ref)
        if not current.enabled:
            raise TemplateDisabledError(template_ref)

        await self._ensure_unique_description(template_ref, changes.description, current)

        if not new_file_path:
            updated = await self._apply_update(template_ref, changes.to_update())
            return UpdateResult(updated=updated)

        upload = await self._content.upload(new_file_path)
        if not upload.success or not upload.file_id:
            logger.warning("template_upload_failed", template_ref=template_ref, error=upload.error)
            raise UploadFailedError(upload.error)

        # The new file is now committed remotely; finish the saga even if cancelled.
        return await asyncio.shield(
            self._commit_file_swap(template_ref, changes, upload.file_id, current.file_ref)
        )

    async def disable(self, template_ref: str) -> DisableResult:
        """
        Soft delete a template after removing its remote body.

        Raises:
            TemplateNotFoundError: No template with this reference
            TemplateDisabledError: Already disabled
            UploadFailedError: The remote file could not be deleted
        """
        template = await self._templates.find_by_ref(template_ref)
        if template is None:
            raise TemplateNotFoundError(template_ref)
        if not template.enabled:
            raise TemplateDisabledError(template_ref)

        if not await self._content.delete_by_id(template.file_ref):
            logger.warning("template_remote_delete_failed",
                           template_ref=template_ref, file_ref=template.file_ref)
            raise UploadFailedError(f"Cannot delete remote file {template.file_ref}.")

        disabled = await self._templates.disable(template_ref)
        logger.info("template_disabled", template_ref=template_ref, disabled=disabled)
        return DisableResult(disabled=disabled)

    async def _ensure_unique_description(
        self,
        template_ref: str,
        description: str | None,
        current: Template,
    ) -> None:
        if not description or description == current.description:
            return
        owner = await self._templates.find_by_description(description)
        if owner is not None and owner.identificator != template_ref:
            raise TemplateDuplicatedError(description)

    async def _commit_file_swap(
        self,
        template_ref: str,
        changes: TemplateChanges,
        new_file_ref: str,
        old_file_ref: str,
    ) -> UpdateResult:
        updated = await self._apply_update(template_ref, changes.to_update(file_ref=new_file_ref))
        if not updated:
            await self._safe_delete(new_file_ref, reason="rollback")
            return UpdateResult(updated=False)

        await self._safe_delete(old_file_ref, reason="cleanup")
        logger.info("template_file_replaced", template_ref=template_ref, file_ref=new_file_ref)
        return UpdateResult(updated=True)

    async def _apply_update(self, template_ref: str, update: dict[str, Any]) -> bool:
        try:
            updated = await self._templates.update(template_ref, update)
        except Exception as e:
            logger.error("template_update_failed", template_ref=template_ref, error=str(e))
            return False
        if not updated:
            logger.warning("template_update_not_applied", template_ref=template_ref)
        return updated

    async def _safe_delete(self, file_id: str, reason: str) -> None:
        try:
            deleted = await self._content.delete_by_id(file_id)
        except Exception as e:
            logger.warning("template_file_delete_failed", file_id=file_id, reason=reason, error=str(e))
            return
        if not deleted:
            logger.warning("template_file_delete_failed", file_id=file_id, reason=reason)
