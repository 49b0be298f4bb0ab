"""Business logic services."""

from . import account_service, message_service

__all__ = ["account_service", "message_service"]
