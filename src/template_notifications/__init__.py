"""
Template Notifications.

Template-driven notification dispatch with an audited delivery log, plus
template registration, update and soft deletion kept consistent with a
remote content store.

Architecture:
    - Domain Layer: Entities, renderer, dispatch and template services
    - Infrastructure Layer: Repositories, content stores, delivery providers

Usage:
    from template_notifications.factory import ComponentFactory
    dispatcher = ComponentFactory().create_notification_dispatcher()
    result = await dispatcher.dispatch("welcome", {"Name": "Ana"}, "ana@example.com")
"""
__version__ = "1.0.0"
