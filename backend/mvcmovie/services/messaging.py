"""
Outgoing account messages (email confirmation, password reset, SMS codes).

AuthMessageSender only logs; swap in a real mail/SMS transport by changing the
factories registered on the service container.
"""
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    async def send_email(self, email: str, subject: str, message: str) -> None: ...


class SmsSender(Protocol):
    async def send_sms(self, number: str, message: str) -> None: ...


class AuthMessageSender:
    """Implements both EmailSender and SmsSender."""

    async def send_email(self, email: str, subject: str, message: str) -> None:
        logger.info("[mail] to=%s subject=%s", email, subject)
        logger.debug("[mail] body=%s", message)

    async def send_sms(self, number: str, message: str) -> None:
        logger.info("[sms] to=%s", number)
        logger.debug("[sms] body=%s", message)
