"""
Console notification adapter - Implements NotificationSender protocol.

This module provides a console-based implementation of the domain's
notification port, logging messages to stdout for development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleNotificationSender:
    """
    Implements NotificationSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - verification codes show up in the logs.
    """

    def send(self, identity_key: str, message: str) -> None:
        """
        Log the message (simulates email or SMS delivery).

        In production, this would be replaced with an email or SMS adapter
        raising DeliveryError when the provider rejects the message.

        Args:
            identity_key: Normalized email address or phone number
            message: Message body, including the verification code
        """
        logger.info("[VERIFICATION] To: %s Message: %s", identity_key, message)
