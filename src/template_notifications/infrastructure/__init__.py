"""
Template Notifications - Infrastructure Layer.

Repositories, content stores and delivery providers.
"""
