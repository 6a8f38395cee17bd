"""Slack and email notifications for project events."""

from .email import EMAIL, EmailClient
from .slack import SlackNotifier

__all__ = [
    "EMAIL",
    "EmailClient",
    "SlackNotifier",
]
