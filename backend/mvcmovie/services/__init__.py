"""
Services Module

Provides application services registered on the container:
- Messaging: email and SMS senders used by the account flows
"""
from .messaging import AuthMessageSender, EmailSender, SmsSender

__all__ = [
    "AuthMessageSender",
    "EmailSender",
    "SmsSender",
]
