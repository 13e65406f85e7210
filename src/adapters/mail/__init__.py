"""Notifier adapters - Activation link delivery."""

from .console import ConsoleNotifier
from .sendgrid import SendGridNotifier

__all__ = ["ConsoleNotifier", "SendGridNotifier"]
