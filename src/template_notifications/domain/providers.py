"""
Template Notifications - External Provider Contracts.

Abstract contracts for the remote file store holding template bodies and for
the transport that delivers rendered messages. Implementations must report
failures through result values rather than raising.

Architecture Layer: Domain
Principles: Dependency Inversion, Interface Segregation
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from .value_objects import ContentResult, DeliveryResult, UploadResult

Recipients = str | list[str]


class ContentStore(ABC):
    """Blob store for template bodies."""

    @abstractmethod
    async def upload(self, path: str) -> UploadResult:
        """
        Upload a local file.

        Args:
            path: Local path (or file name relative to the upload directory)

        Returns:
            UploadResult carrying the new file id on success
        """

    @abstractmethod
    async def delete_by_id(self, file_id: str) -> bool:
        """Delete a stored file. Returns True when the store confirmed the delete."""

    @abstractmethod
    async def fetch_content_by_id(self, file_id: str) -> ContentResult:
        """Fetch the raw text content of a stored file."""


class DeliveryProvider(ABC):
    """Mail or SMS transport."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider name used in logs and diagnostics."""

    @abstractmethod
    async def send(
        self,
        sender: str,
        subject: str,
        recipients: Recipients,
        body: str,
    ) -> DeliveryResult:
        """
        Deliver a rendered message.

        Args:
            sender: From address
            subject: Message subject
            recipients: One address or an ordered list of addresses
            body: Rendered message body

        Returns:
            DeliveryResult with SENT or PROVIDER_FAILURE status
        """
