"""
Template Notifications - Component Factory.

Builds repositories, the content store and the delivery provider from
configuration and wires them into the use-case services.

Architecture Layer: Infrastructure
Principles: Factory Pattern, Constructor Injection
"""
from __future__ import annotations

import structlog

from .config import TemplateNotificationsConfig, get_config
from .domain.providers import ContentStore, DeliveryProvider
from .domain.service import NotificationDispatcher
from .domain.template_service import TemplateService
from .infrastructure.content_store import CloudinaryContentStore, InMemoryContentStore
from .infrastructure.delivery import (
    InMemoryDeliveryProvider,
    ResendDeliveryProvider,
    SmtpDeliveryProvider,
)
from .infrastructure.repository import (
    InMemoryNotificationLogRepository,
    InMemoryTemplateRepository,
    NotificationLogRepository,
    TemplateRepository,
)

logger = structlog.get_logger(__name__)


class ComponentFactory:
    """
    Factory for the collaborators shared by dispatch and template management.

    Each component is created once per factory so that both services see the
    same template repository and content store.
    """

    def __init__(
        self,
        config: TemplateNotificationsConfig | None = None,
        template_repository: TemplateRepository | None = None,
        log_repository: NotificationLogRepository | None = None,
    ) -> None:
        self._config = config or get_config()
        self._template_repo = template_repository
        self._log_repo = log_repository
        self._content_store: ContentStore | None = None
        self._delivery_provider: DeliveryProvider | None = None

    @property
    def config(self) -> TemplateNotificationsConfig:
        return self._config

    def get_template_repository(self) -> TemplateRepository:
        """Get or create the template repository."""
        if self._template_repo is None:
            self._template_repo = InMemoryTemplateRepository()
            logger.info("template_repository_created", type="in_memory")
        return self._template_repo

    def get_log_repository(self) -> NotificationLogRepository:
        """Get or create the notification log repository."""
        if self._log_repo is None:
            self._log_repo = InMemoryNotificationLogRepository()
            logger.info("notification_log_repository_created", type="in_memory")
        return self._log_repo

    def get_content_store(self) -> ContentStore:
        """Get or create the content store selected by configuration."""
        if self._content_store is None:
            settings = self._config.content_store
            if settings.provider == "cloudinary":
                self._content_store = CloudinaryContentStore(settings)
            else:
                self._content_store = InMemoryContentStore(
                    upload_directory=settings.upload_directory,
                    remove_local_after_upload=settings.remove_local_after_upload,
                )
            logger.info("content_store_created", type=settings.provider)
        return self._content_store

    def get_delivery_provider(self) -> DeliveryProvider:
        """Get or create the delivery provider selected by configuration."""
        if self._delivery_provider is None:
            provider = self._config.delivery.provider
            if provider == "smtp":
                self._delivery_provider = SmtpDeliveryProvider(self._config.smtp)
            elif provider == "resend":
                self._delivery_provider = ResendDeliveryProvider(self._config.resend)
            else:
                self._delivery_provider = InMemoryDeliveryProvider()
            logger.info("delivery_provider_created", type=provider)
        return self._delivery_provider

    def create_notification_dispatcher(self) -> NotificationDispatcher:
        return NotificationDispatcher(
            template_repository=self.get_template_repository(),
            content_store=self.get_content_store(),
            delivery_provider=self.get_delivery_provider(),
            log_repository=self.get_log_repository(),
        )

    def create_template_service(self) -> TemplateService:
        return TemplateService(
            template_repository=self.get_template_repository(),
            content_store=self.get_content_store(),
        )
