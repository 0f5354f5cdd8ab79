"""
Template Notifications - Delivery Providers.

Transports handing rendered template bodies to recipients: SMTP via
aiosmtplib, the Resend HTTP API via httpx, and an in-memory provider for
tests and local development. Providers never raise; every outcome is a
DeliveryResult.

Architecture Layer: Infrastructure
Principles: Strategy Pattern, Dependency Inversion, Async I/O
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from email.header import Header
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib
import httpx
import structlog

from ..config import ResendConfig, SmtpConfig
from ..domain.entities import NotificationStatus
from ..domain.providers import DeliveryProvider, Recipients
from ..domain.value_objects import DeliveryResult

logger = structlog.get_logger(__name__)


# Pattern for detecting header injection attempts (newlines and control characters)
_HEADER_INJECTION_PATTERN = re.compile(r'[\r\n\x00\x0b\x0c]')
# Pattern for basic email validation, optionally wrapped as "Name <address>"
_EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
_NAMED_ADDRESS_PATTERN = re.compile(r'^[^<>]*<([^<>]+)>$')


def _sanitize_header(value: str, max_length: int = 998) -> str:
    """
    Sanitize a string for safe use in email headers.

    Args:
        value: The header value to sanitize.
        max_length: Maximum length for the header value (RFC 5322 recommends 998).

    Returns:
        Sanitized string safe for use in email headers.
    """
    if not value:
        return ""
    sanitized = _HEADER_INJECTION_PATTERN.sub('', value)
    return sanitized[:max_length].strip()


def _validate_email_address(email: str) -> bool:
    """Validate a bare or display-name wrapped email address."""
    if not email or len(email) > 320:
        return False
    named = _NAMED_ADDRESS_PATTERN.match(email)
    address = named.group(1).strip() if named else email
    if len(address) > 254:  # RFC 5321 max length
        return False
    return _EMAIL_PATTERN.match(address) is not None


def as_list(recipients: Recipients) -> list[str]:
    """Recipients as an ordered list, without changing the caller's value."""
    return [recipients] if isinstance(recipients, str) else list(recipients)


def _failure(provider: str, detail: str) -> DeliveryResult:
    return DeliveryResult(
        status=NotificationStatus.PROVIDER_FAILURE,
        response="",
        failure_detail=f"[{provider.upper()}] {detail}",
    )


class SmtpDeliveryProvider(DeliveryProvider):
    """Email delivery over SMTP with header injection protection."""

    def __init__(self, config: SmtpConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        return "smtp"

    def _build_message(self, sender: str, subject: str, recipients: list[str], body: str) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        # Header handles RFC 2047 encoding of non-ASCII subjects
        message["Subject"] = Header(_sanitize_header(subject, max_length=200), "utf-8")
        message["From"] = _sanitize_header(sender)
        message["To"] = ", ".join(recipients)
        message.attach(MIMEText(body, "html", "utf-8"))
        return message

    async def send(
        self,
        sender: str,
        subject: str,
        recipients: Recipients,
        body: str,
    ) -> DeliveryResult:
        addresses = [_sanitize_header(r) for r in as_list(recipients)]
        invalid = [a for a in addresses if not _validate_email_address(a)]
        if not addresses or invalid:
            logger.warning("smtp_invalid_recipients", invalid=invalid)
            return _failure(self.name, f"Invalid recipient addresses: {invalid or addresses}")
        if not _validate_email_address(_sanitize_header(sender)):
            return _failure(self.name, f"Invalid sender address: {sender[:50]}")

        message = self._build_message(sender, subject, addresses, body)
        try:
            async with aiosmtplib.SMTP(
                hostname=self._config.host,
                port=self._config.port,
                use_tls=self._config.use_tls,
                start_tls=self._config.start_tls,
                timeout=self._config.timeout_seconds,
            ) as smtp:
                if self._config.username:
                    await smtp.login(self._config.username, self._config.password)
                errors, server_message = await smtp.send_message(message)
        except Exception as e:
            logger.error("smtp_delivery_failed", recipients=len(addresses), error=str(e))
            return _failure(self.name, str(e))

        rejected = sorted(errors) if errors else []
        if rejected and len(rejected) == len(addresses):
            return _failure(self.name, f"All recipients rejected: {rejected}")

        logger.info("smtp_delivered", recipients=len(addresses), rejected=len(rejected))
        return DeliveryResult(
            status=NotificationStatus.SENT,
            response=json.dumps({"response": str(server_message), "rejected": rejected}),
            failure_detail="",
        )


class ResendDeliveryProvider(DeliveryProvider):
    """Email delivery through the Resend HTTP API."""

    def __init__(self, config: ResendConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
        return self._client

    @property
    def name(self) -> str:
        return "resend"

    async def send(
        self,
        sender: str,
        subject: str,
        recipients: Recipients,
        body: str,
    ) -> DeliveryResult:
        payload = {
            "from": sender,
            "to": recipients,
            "subject": subject,
            "html": body,
        }
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }

        client = await self._get_client()
        try:
            response = await client.post(f"{self._config.api_url}/emails", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("resend_delivery_failed", error=str(e))
            return _failure(self.name, str(e))

        if response.status_code >= 400:
            logger.warning("resend_delivery_rejected", status_code=response.status_code)
            return _failure(self.name, f"HTTP {response.status_code}: {response.text[:500]}")

        logger.info("resend_delivered", recipients=len(as_list(recipients)))
        return DeliveryResult(
            status=NotificationStatus.SENT,
            response=response.text,
            failure_detail="",
        )


@dataclass(slots=True)
class SentMessage:
    sender: str
    subject: str
    recipients: Recipients
    body: str


class InMemoryDeliveryProvider(DeliveryProvider):
    """Provider storing sent messages for inspection during tests."""

    def __init__(
        self,
        status: NotificationStatus = NotificationStatus.SENT,
        failure_detail: str | None = None,
    ) -> None:
        self.sent: list[SentMessage] = []
        self._status = status
        self._failure_detail = failure_detail

    @property
    def name(self) -> str:
        return "memory"

    async def send(
        self,
        sender: str,
        subject: str,
        recipients: Recipients,
        body: str,
    ) -> DeliveryResult:
        self.sent.append(SentMessage(sender=sender, subject=subject, recipients=recipients, body=body))
        return DeliveryResult(
            status=self._status,
            response=json.dumps({"id": len(self.sent)}),
            failure_detail=self._failure_detail,
        )
