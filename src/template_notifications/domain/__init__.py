"""
Template Notifications - Domain Layer.

Entities, rendering, and the dispatch and template management use cases.
"""
from .entities import (
    NotificationAttempt,
    NotificationStatus,
    Template,
    TemplateChanges,
    TemplateType,
)
from .errors import (
    FieldsNotValidError,
    TemplateDisabledError,
    TemplateDuplicatedError,
    TemplateNotFoundError,
    TemplateNotificationsError,
    TemplateTypeNotAllowedError,
    UploadFailedError,
)
from .providers import ContentStore, DeliveryProvider, Recipients
from .renderer import TemplateRenderer, format_value
from .service import NotificationDispatcher, missing_required_fields
from .template_service import TemplateService
from .value_objects import (
    ContentResult,
    DeliveryResult,
    DispatchResult,
    DisableResult,
    RenderResult,
    StoreResult,
    UpdateResult,
    UploadResult,
)

__all__ = [
    # Entities
    "NotificationAttempt",
    "NotificationStatus",
    "Template",
    "TemplateChanges",
    "TemplateType",
    # Errors
    "FieldsNotValidError",
    "TemplateDisabledError",
    "TemplateDuplicatedError",
    "TemplateNotFoundError",
    "TemplateNotificationsError",
    "TemplateTypeNotAllowedError",
    "UploadFailedError",
    # Providers
    "ContentStore",
    "DeliveryProvider",
    "Recipients",
    # Rendering
    "TemplateRenderer",
    "format_value",
    # Services
    "NotificationDispatcher",
    "TemplateService",
    "missing_required_fields",
    # Results
    "ContentResult",
    "DeliveryResult",
    "DispatchResult",
    "DisableResult",
    "RenderResult",
    "StoreResult",
    "UpdateResult",
    "UploadResult",
]
