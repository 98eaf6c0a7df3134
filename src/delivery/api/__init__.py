"""Delivery domain API package."""

from delivery.api.errors import register_delivery_exception_handlers
from delivery.api.routes import agent_router, order_router, shop_router

__all__ = ["order_router", "agent_router", "shop_router", "register_delivery_exception_handlers"]
