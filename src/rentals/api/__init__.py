"""Rentals API package."""

from rentals.api.errors import register_error_handlers
from rentals.api.routes import order_router, webhook_router

__all__ = ["order_router", "webhook_router", "register_error_handlers"]
