"""
Pytest configuration and fixtures for template notifications tests.
"""
import pytest

from template_notifications.config import reset_config
from template_notifications.domain.entities import Template, TemplateType
from template_notifications.domain.service import NotificationDispatcher
from template_notifications.domain.template_service import TemplateService
from template_notifications.infrastructure.content_store import InMemoryContentStore
from template_notifications.infrastructure.delivery import InMemoryDeliveryProvider
from template_notifications.infrastructure.repository import (
    InMemoryNotificationLogRepository,
    InMemoryTemplateRepository,
)


WELCOME_BODY = '<p>Hello @Model.map["Name"], your code is {{ Code }}.</p>'


@pytest.fixture(autouse=True)
def _reset_config():
    """Drop the cached configuration between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def template_repository():
    """Create an empty in-memory template repository."""
    return InMemoryTemplateRepository()


@pytest.fixture
def log_repository():
    """Create an empty in-memory notification log."""
    return InMemoryNotificationLogRepository()


@pytest.fixture
def content_store(tmp_path):
    """Create an in-memory content store staging files under tmp_path."""
    return InMemoryContentStore(upload_directory=str(tmp_path))


@pytest.fixture
def delivery_provider():
    """Create a delivery provider that always reports SENT."""
    return InMemoryDeliveryProvider()


@pytest.fixture
def make_template(template_repository, content_store):
    """Store a template whose body is seeded in the content store."""
    async def _make(
        body: str = WELCOME_BODY,
        required_fields: list[str] | None = None,
        description: str = "Welcome email",
        enabled: bool = True,
    ) -> Template:
        template = Template(
            identificator=description.lower().replace(" ", "-"),
            template_type=TemplateType.EMAIL,
            sender="noreply@example.com",
            subject="Welcome",
            description=description,
            required_fields=["Name"] if required_fields is None else required_fields,
            file_ref=content_store.put(body),
            enabled=enabled,
        )
        return await template_repository.store(template)
    return _make


@pytest.fixture
def dispatcher(template_repository, content_store, delivery_provider, log_repository):
    """Create a dispatcher over in-memory collaborators."""
    return NotificationDispatcher(
        template_repository=template_repository,
        content_store=content_store,
        delivery_provider=delivery_provider,
        log_repository=log_repository,
    )


@pytest.fixture
def template_service(template_repository, content_store):
    """Create a template service over in-memory collaborators."""
    return TemplateService(template_repository, content_store)
