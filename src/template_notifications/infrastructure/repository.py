"""
Template Notifications - Repository Layer.

Persistence contracts for templates and the notification audit log, with
in-memory implementations used for development and tests. Concrete database
adapters implement the same contracts.

Architecture Layer: Infrastructure
Principles: Repository Pattern, Dependency Inversion, Interface Segregation
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

import structlog

from ..domain.entities import NotificationAttempt, Template

logger = structlog.get_logger(__name__)


# --- Exceptions ---


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class DuplicateEntityError(RepositoryError):
    """Duplicate entity in repository."""

    def __init__(self, entity_type: str, identifier: str) -> None:
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(f"{entity_type} with identifier {identifier} already exists")


# --- Abstract Repositories ---


class TemplateRepository(ABC):
    """
    Abstract repository for template metadata.

    Lookups return None when nothing matches. Disabled templates remain
    stored and are still returned by lookups.
    """

    @abstractmethod
    async def store(self, template: Template) -> Template:
        """
        Persist a new template.

        Raises:
            DuplicateEntityError: If the identificator or description is taken
        """

    @abstractmethod
    async def find_by_ref(self, identificator: str) -> Template | None:
        """Get a template by its external identificator."""

    @abstractmethod
    async def find_by_description(self, description: str) -> Template | None:
        """Get the template using a description, enabled or not."""

    @abstractmethod
    async def update(self, identificator: str, changes: dict[str, Any]) -> bool:
        """
        Apply a partial update atomically.

        Returns:
            True if applied, False if the template is missing or disabled
        """

    @abstractmethod
    async def disable(self, identificator: str) -> bool:
        """
        Soft delete a template.

        Returns:
            True if the template was enabled and is now disabled
        """


class NotificationLogRepository(ABC):
    """Append-only store of dispatch attempts."""

    @abstractmethod
    async def append(self, attempt: NotificationAttempt) -> None:
        """Persist one attempt. Errors propagate to the caller."""


# --- In-Memory Implementations ---


class InMemoryTemplateRepository(TemplateRepository):
    """
    In-memory template repository for testing and development.

    Per-record updates are serialized with an asyncio lock.
    """

    def __init__(self) -> None:
        self._templates: dict[str, Template] = {}
        self._refs_by_description: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def store(self, template: Template) -> Template:
        async with self._lock:
            if template.identificator in self._templates:
                raise DuplicateEntityError("Template", template.identificator)
            if template.description in self._refs_by_description:
                raise DuplicateEntityError("Template", template.description)

            self._templates[template.identificator] = template
            self._refs_by_description[template.description] = template.identificator
            logger.debug("template_stored", identificator=template.identificator)
            return template

    async def find_by_ref(self, identificator: str) -> Template | None:
        return self._templates.get(identificator)

    async def find_by_description(self, description: str) -> Template | None:
        ref = self._refs_by_description.get(description)
        return self._templates.get(ref) if ref else None

    async def update(self, identificator: str, changes: dict[str, Any]) -> bool:
        async with self._lock:
            current = self._templates.get(identificator)
            if current is None or not current.enabled:
                return False

            new_description = changes.get("description")
            if new_description and new_description != current.description:
                owner = self._refs_by_description.get(new_description)
                if owner is not None and owner != identificator:
                    raise DuplicateEntityError("Template", new_description)
                del self._refs_by_description[current.description]
                self._refs_by_description[new_description] = identificator

            self._templates[identificator] = current.apply_update(changes)
            logger.debug("template_updated", identificator=identificator, fields=sorted(changes))
            return True

    async def disable(self, identificator: str) -> bool:
        async with self._lock:
            current = self._templates.get(identificator)
            if current is None or not current.enabled:
                return False
            self._templates[identificator] = current.disable()
            logger.debug("template_disabled", identificator=identificator)
            return True


class InMemoryNotificationLogRepository(NotificationLogRepository):
    """In-memory audit log keeping storage records in insertion order."""

    def __init__(self) -> None:
        self._records: list[dict[str, Any]] = []
        self._lock = asyncio.Lock()

    async def append(self, attempt: NotificationAttempt) -> None:
        async with self._lock:
            self._records.append(attempt.to_record())
        logger.debug("notification_attempt_stored",
                     attempt_id=str(attempt.attempt_id), status=attempt.status.value)

    @property
    def records(self) -> list[dict[str, Any]]:
        return list(self._records)

    def find_by_attempt_id(self, attempt_id: UUID) -> dict[str, Any] | None:
        return next((r for r in self._records if r["attempt_id"] == str(attempt_id)), None)
