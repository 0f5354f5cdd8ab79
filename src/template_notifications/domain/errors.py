"""
Template Notifications - Domain Errors.

Caller-visible conditions raised before any side effect has happened.
Infrastructural failures are reported through result values instead.
"""
from __future__ import annotations


class TemplateNotificationsError(Exception):
    """Base exception for caller-visible template and dispatch failures."""
    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TemplateNotFoundError(TemplateNotificationsError):
    """Raised when no template exists for the given reference."""
    status_code = 404

    def __init__(self, template_ref: str) -> None:
        self.template_ref = template_ref
        super().__init__(f"Template {template_ref} not found.")


class TemplateDisabledError(TemplateNotificationsError):
    """Raised when the template exists but has been disabled."""
    status_code = 412

    def __init__(self, template_ref: str) -> None:
        self.template_ref = template_ref
        super().__init__(f"Template {template_ref} is disabled.")


class FieldsNotValidError(TemplateNotificationsError):
    """Raised when required template fields are absent or null."""
    status_code = 400

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Fields are not valid, missing: {', '.join(missing)}.")


class TemplateDuplicatedError(TemplateNotificationsError):
    """Raised when a description is already used by another template."""
    status_code = 409

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"Cannot duplicate templates by description: {description!r}.")


class TemplateTypeNotAllowedError(TemplateNotificationsError):
    """Raised when registering a template of an unsupported type."""
    status_code = 400

    def __init__(self, template_type: object) -> None:
        self.template_type = template_type
        super().__init__(f"Template type not allowed: {template_type!r}.")


class UploadFailedError(TemplateNotificationsError):
    """Raised when the content store rejects an upload or delete."""
    status_code = 500

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        message = "Cannot upload file."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)
