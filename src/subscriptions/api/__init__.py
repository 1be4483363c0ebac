"""Subscriptions API package."""

from subscriptions.api.errors import register_error_handlers
from subscriptions.api.routes import installment_router, subscription_router

__all__ = ["subscription_router", "installment_router", "register_error_handlers"]
