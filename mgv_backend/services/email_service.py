"""
Transactional email transports.

BrevoMailer talks to the Brevo HTTP API. ConsoleMailer is used when no API key
is configured and only logs what would have been sent.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from ..errors import NotificationFailure

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    to: List[str]
    subject: str
    html: str
    cc: List[str] = field(default_factory=list)


class BrevoMailer:

    def __init__(self, api_key: str, sender_email: str, sender_name: str,
                 api_url: str = "https://api.brevo.com/v3/smtp/email", timeout: int = 15):
        self.api_url = api_url
        self.sender = {"name": sender_name, "email": sender_email}
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "api-key": api_key,
            "User-Agent": "MGV-Backend/mailer",
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def send(self, message: EmailMessage) -> str:
        payload = {
            "sender": self.sender,
            "to": [{"email": address} for address in message.to],
            "subject": message.subject,
            "htmlContent": message.html,
        }
        if message.cc:
            payload["cc"] = [{"email": address} for address in message.cc]

        try:
            response = self.session.post(self.api_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NotificationFailure(f"Brevo rejected email to {', '.join(message.to)}: {e}") from e

        message_id = (response.json() or {}).get("messageId", "")
        logger.info("Email sent to %s. Message ID: %s", ", ".join(message.to), message_id)
        return message_id


class ConsoleMailer:

    def __init__(self):
        self.outbox: List[EmailMessage] = []

    def send(self, message: EmailMessage) -> str:
        self.outbox.append(message)
        logger.info("[DEV MODE] Email would be sent to %s (cc: %s): %s",
                    ", ".join(message.to), ", ".join(message.cc) or "-", message.subject)
        return f"DEV_MODE_{len(self.outbox)}"


def build_mailer(config) -> "BrevoMailer | ConsoleMailer":
    api_key: Optional[str] = config.get("BREVO_API_KEY")
    if api_key and api_key.startswith("xkeysib-"):
        return BrevoMailer(
            api_key=api_key,
            sender_email=config["EMAIL_SENDER"],
            sender_name=config["EMAIL_SENDER_NAME"],
            api_url=config["BREVO_API_URL"],
            timeout=config["EMAIL_TIMEOUT"],
        )
    logger.warning("BREVO_API_KEY is not configured; emails will be logged instead of sent.")
    return ConsoleMailer()
