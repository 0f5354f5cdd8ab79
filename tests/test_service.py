"""
Unit tests for the notification dispatcher.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from template_notifications.domain.entities import NotificationStatus
from template_notifications.domain.errors import (
    FieldsNotValidError,
    TemplateDisabledError,
    TemplateNotFoundError,
)
from template_notifications.domain.providers import ContentStore, DeliveryProvider
from template_notifications.domain.renderer import TemplateRenderer
from template_notifications.domain.service import NotificationDispatcher, missing_required_fields
from template_notifications.domain.value_objects import ContentResult, DeliveryResult, RenderResult
from template_notifications.infrastructure.delivery import InMemoryDeliveryProvider


class TestMissingRequiredFields:
    """Tests for required field validation."""

    def test_absent_and_none_are_missing(self):
        assert missing_required_fields(["a", "b", "c"], {"a": 1, "b": None}) == ["b", "c"]

    def test_falsy_values_are_present(self):
        assert missing_required_fields(["a", "b", "c"], {"a": "", "b": 0, "c": False}) == []


class TestDispatchHappyPath:
    """Tests for successful dispatch."""

    @pytest.mark.asyncio
    async def test_sends_and_records_one_attempt(self, dispatcher, make_template,
                                                 delivery_provider, log_repository):
        template = await make_template(body="Hi {{name}}", required_fields=["name"])

        result = await dispatcher.dispatch(template.identificator, {"name": "Bo"}, ["bo@example.com"])

        assert result.sent is True
        assert len(log_repository.records) == 1
        record = log_repository.records[0]
        assert record["status"] == "sent"
        assert record["template_ref"] == template.identificator
        assert record["recipients"] == "bo@example.com"
        assert delivery_provider.sent[0].body == "Hi Bo"
        assert delivery_provider.sent[0].sender == "noreply@example.com"
        assert delivery_provider.sent[0].subject == "Welcome"

    @pytest.mark.asyncio
    async def test_recipients_passed_to_provider_unchanged(self, dispatcher, make_template,
                                                           delivery_provider, log_repository):
        template = await make_template()
        recipients = ["a@example.com", "b@example.com"]

        await dispatcher.dispatch(template.identificator, {"Name": "Ana", "Code": 7}, recipients)

        assert delivery_provider.sent[0].recipients == recipients
        assert log_repository.records[0]["recipients"] == "a@example.com,b@example.com"

    @pytest.mark.asyncio
    async def test_extra_fields_are_ignored(self, dispatcher, make_template, delivery_provider):
        template = await make_template()

        result = await dispatcher.dispatch(
            template.identificator, {"Name": "Ana", "Code": 7, "Unused": "x"}, "ana@example.com",
        )

        assert result.sent is True
        assert delivery_provider.sent[0].body == "<p>Hello Ana, your code is 7.</p>"


class TestDispatchCallerErrors:
    """Caller errors raise before anything is recorded."""

    @pytest.mark.asyncio
    async def test_missing_template(self, dispatcher, log_repository):
        with pytest.raises(TemplateNotFoundError):
            await dispatcher.dispatch("unknown-ref", {}, [])
        assert log_repository.records == []

    @pytest.mark.asyncio
    async def test_disabled_template(self, dispatcher, make_template, log_repository, delivery_provider):
        template = await make_template(enabled=False)

        with pytest.raises(TemplateDisabledError):
            await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")
        assert log_repository.records == []
        assert delivery_provider.sent == []

    @pytest.mark.asyncio
    async def test_missing_required_field(self, dispatcher, make_template, log_repository,
                                          delivery_provider):
        template = await make_template(required_fields=["name", "email"])

        with pytest.raises(FieldsNotValidError) as exc_info:
            await dispatcher.dispatch(template.identificator, {"name": "x"}, "x@example.com")

        assert exc_info.value.missing == ["email"]
        assert log_repository.records == []
        assert delivery_provider.sent == []

    @pytest.mark.asyncio
    async def test_none_required_field_is_missing(self, dispatcher, make_template, log_repository):
        template = await make_template(required_fields=["Name"])

        with pytest.raises(FieldsNotValidError):
            await dispatcher.dispatch(template.identificator, {"Name": None}, "x@example.com")
        assert log_repository.records == []


class TestDispatchRecordedFailures:
    """Failures after resolution produce exactly one audit record."""

    @pytest.mark.asyncio
    async def test_content_fetch_failure(self, template_repository, log_repository, make_template):
        template = await make_template()
        content_store = AsyncMock(spec=ContentStore)
        content_store.fetch_content_by_id.return_value = ContentResult.failed("[TEST] File not found")
        delivery = AsyncMock(spec=DeliveryProvider)
        dispatcher = NotificationDispatcher(template_repository, content_store, delivery, log_repository)

        result = await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")

        assert result.sent is False
        assert len(log_repository.records) == 1
        record = log_repository.records[0]
        assert record["status"] == "provider_failure"
        assert record["failure_detail"] == "[TEST] File not found"
        delivery.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_content_store_exception_is_recorded(self, template_repository, log_repository,
                                                       make_template):
        template = await make_template()
        content_store = AsyncMock(spec=ContentStore)
        content_store.fetch_content_by_id.side_effect = ConnectionError("network down")
        delivery = AsyncMock(spec=DeliveryProvider)
        dispatcher = NotificationDispatcher(template_repository, content_store, delivery, log_repository)

        result = await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")

        assert result.sent is False
        assert len(log_repository.records) == 1
        record = log_repository.records[0]
        assert record["status"] == "provider_failure"
        assert record["failure_detail"] == "[ConnectionError] network down"
        delivery.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_content_is_a_fetch_failure(self, dispatcher, make_template, log_repository,
                                                    delivery_provider):
        template = await make_template(body="")

        result = await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")

        assert result.sent is False
        assert log_repository.records[0]["status"] == "provider_failure"
        assert log_repository.records[0]["failure_detail"]
        assert delivery_provider.sent == []

    @pytest.mark.asyncio
    async def test_content_failure_recorded_before_field_validation(self, template_repository,
                                                                    log_repository, make_template):
        template = await make_template(required_fields=["Name"])
        content_store = AsyncMock(spec=ContentStore)
        content_store.fetch_content_by_id.return_value = ContentResult.failed("down")
        dispatcher = NotificationDispatcher(
            template_repository, content_store, InMemoryDeliveryProvider(), log_repository,
        )

        result = await dispatcher.dispatch(template.identificator, {}, "ana@example.com")

        assert result.sent is False
        assert len(log_repository.records) == 1

    @pytest.mark.asyncio
    async def test_render_failure_is_terminal(self, template_repository, content_store,
                                              log_repository, make_template):
        template = await make_template()
        renderer = MagicMock(spec=TemplateRenderer)
        renderer.render.return_value = RenderResult(success=False, error="bad body")
        delivery = AsyncMock(spec=DeliveryProvider)
        dispatcher = NotificationDispatcher(
            template_repository, content_store, delivery, log_repository, renderer=renderer,
        )

        result = await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")

        assert result.sent is False
        record = log_repository.records[0]
        assert record["status"] == "core_failure"
        assert record["failure_detail"] == "[CORE] Template processing failed: bad body"
        delivery.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_failure_recorded(self, template_repository, content_store,
                                             log_repository, make_template):
        template = await make_template()
        delivery = InMemoryDeliveryProvider(
            status=NotificationStatus.PROVIDER_FAILURE, failure_detail="[MEMORY] rejected",
        )
        dispatcher = NotificationDispatcher(template_repository, content_store, delivery, log_repository)

        result = await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")

        assert result.sent is False
        assert len(log_repository.records) == 1
        assert log_repository.records[0]["status"] == "provider_failure"
        assert log_repository.records[0]["failure_detail"] == "[MEMORY] rejected"

    @pytest.mark.asyncio
    async def test_provider_exception_becomes_provider_failure(self, template_repository,
                                                               content_store, log_repository,
                                                               make_template):
        template = await make_template()
        delivery = AsyncMock(spec=DeliveryProvider)
        delivery.name = "smtp"
        delivery.send.side_effect = ConnectionError("refused")
        dispatcher = NotificationDispatcher(template_repository, content_store, delivery, log_repository)

        result = await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")

        assert result.sent is False
        assert log_repository.records[0]["status"] == "provider_failure"
        assert log_repository.records[0]["failure_detail"] == "[SMTP] refused"

    @pytest.mark.asyncio
    async def test_provider_response_is_recorded(self, template_repository, content_store,
                                                 log_repository, make_template):
        template = await make_template()
        delivery = AsyncMock(spec=DeliveryProvider)
        delivery.name = "resend"
        delivery.send.return_value = DeliveryResult(
            status=NotificationStatus.SENT, response='{"id": "abc"}',
        )
        dispatcher = NotificationDispatcher(template_repository, content_store, delivery, log_repository)

        result = await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")

        assert result.sent is True
        assert log_repository.records[0]["response"] == '{"id": "abc"}'

    @pytest.mark.asyncio
    async def test_log_append_failure_propagates(self, template_repository, content_store,
                                                 make_template):
        template = await make_template()
        log_repository = AsyncMock()
        log_repository.append.side_effect = RuntimeError("log store down")
        dispatcher = NotificationDispatcher(
            template_repository, content_store, InMemoryDeliveryProvider(), log_repository,
        )

        with pytest.raises(RuntimeError, match="log store down"):
            await dispatcher.dispatch(template.identificator, {"Name": "Ana"}, "ana@example.com")
