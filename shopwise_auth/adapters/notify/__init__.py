"""Notification adapters - Code delivery implementations."""

from .console import ConsoleNotificationSender

__all__ = ["ConsoleNotificationSender"]
