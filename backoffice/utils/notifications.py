"""
Notification utilities for alerts and outgoing messages.

This module delivers operator alerts (critical errors) and the rendered
customer/supplier messages produced by the notification queue.
"""

import logging
from typing import Any, Dict, Optional

from backoffice.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

SUPPORTED_CHANNELS = ("email", "whatsapp", "sms")


async def send_error_alert(alert_data: Dict[str, Any]) -> None:
    """
    Send error alert notification.

    Args:
        alert_data: Dictionary containing error information
    """
    if not settings.ALERT_EMAIL_ENABLED:
        logger.info("Email alerts disabled, skipping alert notification")
        return

    try:
        # TODO: wire an SMTP transport once ALERT_EMAIL_FROM has a relay configured
        logger.warning(
            f"Error Alert to {settings.ALERT_EMAIL_TO}: "
            f"Type: {alert_data.get('error_type')} - "
            f"Message: {alert_data.get('error_message')} - "
            f"Timestamp: {alert_data.get('timestamp')}"
        )

    except Exception as e:
        logger.error(f"Failed to send error alert: {e}")


async def deliver_message(
    channel: str,
    recipient: Optional[str],
    body: str,
    subject: Optional[str] = None,
    language: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Deliver a rendered message on the given channel.

    No channel transport is wired yet. The message is logged and the outcome
    reports ``delivered: False`` with reason ``no_transport``.

    Args:
        channel: Delivery channel (email, whatsapp, sms)
        recipient: Email address or phone number
        body: Rendered message body
        subject: Optional subject line (email only)
        language: Language the message was rendered in

    Returns:
        Dict: Delivery outcome with ``delivered`` flag and reason when skipped
    """
    if channel not in SUPPORTED_CHANNELS:
        logger.warning(f"⚠️ Unsupported notification channel: {channel}")
        return {"delivered": False, "channel": channel, "reason": "unsupported_channel"}

    if not recipient:
        logger.warning(f"⚠️ Notification without recipient on channel {channel}, skipping")
        return {"delivered": False, "channel": channel, "reason": "missing_recipient"}

    logger.info(
        f"📤 Notification [{channel}] to {recipient} ({language or 'n/a'}): "
        f"{subject or body[:60]}"
    )

    return {
        "delivered": False,
        "reason": "no_transport",
        "channel": channel,
        "recipient": recipient,
        "language": language,
    }


async def test_email_configuration() -> bool:
    """
    Test email configuration.

    Returns:
        bool: True if email configuration is valid
    """
    try:
        if not settings.ALERT_EMAIL_ENABLED:
            logger.info("Email alerts disabled, skipping configuration test")
            return True

        required_settings = ["ALERT_EMAIL_FROM", "ALERT_EMAIL_TO"]
        missing_settings = [setting for setting in required_settings if not getattr(settings, setting, None)]

        if missing_settings:
            logger.warning(f"Missing email settings: {missing_settings}")
            return False

        logger.info("Email configuration test passed")
        return True

    except Exception as e:
        logger.error(f"Email configuration test failed: {e}")
        return False
