"""Notification backends."""

import logging
from html import escape

from omiewatch.notifiers.matrix import send_matrix_message
from omiewatch.notifiers.telegram import send_telegram_message

logger = logging.getLogger(__name__)

TITLE = "<b>omiewatch</b>"

CHANNELS = {
    "matrix": send_matrix_message,
    "telegram": send_telegram_message,
}


def notify(message: str) -> bool:
    """Send `message` to every configured channel. True if any delivered."""
    delivered = False
    for name, send in CHANNELS.items():
        if send(message):
            delivered = True
        else:
            logger.debug("%s: message not delivered", name)
    if not delivered:
        logger.warning("Notification not delivered on any channel")
    return delivered


def format_alert(trend: float, max_value: float) -> str:
    return (
        f"{TITLE}\nPrice will hit configured maximum: <b>{trend:0.2f}</b>"
        f" (max {max_value:0.2f})"
    )


def format_failure(reason: str) -> str:
    return f"{TITLE}\n<b>run failed</b>: {escape(reason)}"


__all__ = [
    "format_alert",
    "format_failure",
    "notify",
    "send_matrix_message",
    "send_telegram_message",
]
