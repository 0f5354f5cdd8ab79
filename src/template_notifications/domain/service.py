"""
Template Notifications - Notification Dispatch.

Turns a (template reference, fields, recipients) request into exactly one
audited delivery attempt. Caller errors (unknown template, disabled template,
invalid fields) raise before anything is written; every failure after the
template resolved is captured in the audit log and reported as ``sent=False``.

Architecture Layer: Domain
Principles: Facade Pattern, Explicit Results, Constructor Injection
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from .entities import NotificationAttempt, NotificationStatus, Template
from .errors import FieldsNotValidError, TemplateDisabledError, TemplateNotFoundError
from .providers import ContentStore, DeliveryProvider, Recipients
from .renderer import TemplateRenderer
from .value_objects import ContentResult, DeliveryResult, DispatchResult

if TYPE_CHECKING:
    from ..infrastructure.repository import NotificationLogRepository, TemplateRepository

logger = structlog.get_logger(__name__)


def missing_required_fields(required: list[str], fields: Mapping[str, Any]) -> list[str]:
    """Required names that are absent or None. Empty strings, 0 and False are valid."""
    return [name for name in required if fields.get(name) is None]


class NotificationDispatcher:
    """
    Orchestrates template resolution, rendering, delivery and audit logging.

    Every invocation that gets past template resolution appends exactly one
    NotificationAttempt to the log repository.
    """

    def __init__(
        self,
        template_repository: TemplateRepository,
        content_store: ContentStore,
        delivery_provider: DeliveryProvider,
        log_repository: NotificationLogRepository,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self._templates = template_repository
        self._content = content_store
        self._delivery = delivery_provider
        self._log = log_repository
        self._renderer = renderer or TemplateRenderer()

    async def dispatch(
        self,
        template_ref: str,
        fields: Mapping[str, Any],
        recipients: Recipients,
    ) -> DispatchResult:
        """
        Render a template and deliver it.

        Args:
            template_ref: External identificator of the template
            fields: Values substituted into the template body
            recipients: One address or an ordered list of addresses

        Returns:
            DispatchResult, ``sent`` is True only when the provider reported SENT

        Raises:
            TemplateNotFoundError: No template with this reference
            TemplateDisabledError: The template has been disabled
            FieldsNotValidError: A required field is absent or None
        """
        log = logger.bind(template_ref=template_ref)
        template = await self._resolve_template(template_ref)

        content_result = await self._fetch_content(template)
        if not content_result.success or not content_result.content:
            detail = content_result.error or f"Template content {template.file_ref} is empty"
            log.warning("notification_content_fetch_failed", file_ref=template.file_ref, error=detail)
            return await self._record(
                template_ref, recipients, NotificationStatus.PROVIDER_FAILURE,
                response="", failure_detail=detail,
            )

        missing = missing_required_fields(template.required_fields, fields)
        if missing:
            log.info("notification_fields_not_valid", missing=missing)
            raise FieldsNotValidError(missing)

        rendered = self._renderer.render(content_result.content, fields)
        if not rendered.success:
            log.error("notification_render_failed", error=rendered.error)
            return await self._record(
                template_ref, recipients, NotificationStatus.CORE_FAILURE,
                response="",
                failure_detail=f"[CORE] Template processing failed: {rendered.error}",
            )

        delivery = await self._deliver(template, recipients, rendered.content)
        log.info("notification_dispatched",
                 provider=self._delivery.name, status=delivery.status.value)
        return await self._record(
            template_ref, recipients, delivery.status,
            response=delivery.response, failure_detail=delivery.failure_detail,
        )

    async def _resolve_template(self, template_ref: str) -> Template:
        template = await self._templates.find_by_ref(template_ref)
        if template is None:
            logger.info("notification_template_not_found", template_ref=template_ref)
            raise TemplateNotFoundError(template_ref)
        if not template.enabled:
            logger.info("notification_template_disabled", template_ref=template_ref)
            raise TemplateDisabledError(template_ref)
        return template

    async def _fetch_content(self, template: Template) -> ContentResult:
        try:
            return await self._content.fetch_content_by_id(template.file_ref)
        except Exception as e:
            logger.error("notification_content_store_raised",
                         file_ref=template.file_ref, error=str(e))
            return ContentResult.failed(f"[{type(e).__name__}] {e}")

    async def _deliver(self, template: Template, recipients: Recipients, body: str) -> DeliveryResult:
        try:
            return await self._delivery.send(template.sender, template.subject, recipients, body)
        except Exception as e:
            logger.error("notification_provider_raised",
                         provider=self._delivery.name, error=str(e))
            return DeliveryResult(
                status=NotificationStatus.PROVIDER_FAILURE,
                failure_detail=f"[{self._delivery.name.upper()}] {e}",
            )

    async def _record(
        self,
        template_ref: str,
        recipients: Recipients,
        status: NotificationStatus,
        response: str | None = None,
        failure_detail: str | None = None,
    ) -> DispatchResult:
        attempt = NotificationAttempt(
            template_ref=template_ref,
            recipients=recipients,
            status=status,
            response=response,
            failure_detail=failure_detail,
        )
        await self._log.append(attempt)
        return DispatchResult(sent=status == NotificationStatus.SENT)
