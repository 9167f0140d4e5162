"""Plain-text email over the SendGrid or Resend HTTP APIs."""

import logging
from dataclasses import dataclass
from typing import Callable

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Provider:
    name: str
    url: str
    accepted: frozenset[int]
    payload: Callable[["EmailSender", str, str, str], dict]


def _sendgrid_payload(sender: "EmailSender", to: str, subject: str, body: str) -> dict:
    return {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": sender.from_email, "name": sender.from_name},
        "subject": subject,
        "content": [{"type": "text/plain", "value": body}],
    }


def _resend_payload(sender: "EmailSender", to: str, subject: str, body: str) -> dict:
    return {
        "from": f"{sender.from_name} <{sender.from_email}>",
        "to": [to],
        "subject": subject,
        "text": body,
    }


PROVIDERS = {
    "sendgrid": Provider(
        "SendGrid", "https://api.sendgrid.com/v3/mail/send", frozenset({200, 202}), _sendgrid_payload
    ),
    "resend": Provider(
        "Resend", "https://api.resend.com/emails", frozenset({200, 201}), _resend_payload
    ),
}


class EmailSender:
    """Sends one message per call; a missing provider only logs."""

    def __init__(
        self,
        provider: str = "",
        api_key: str = "",
        from_email: str = "notificacoes@example.com",
        from_name: str = "Inspeções",
        timeout: float = 30,
    ):
        self.provider = PROVIDERS.get(provider.lower())
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return self.provider is not None and bool(self.api_key)

    async def send(self, to_email: str, subject: str, body: str) -> bool:
        """Return True only when the provider accepted the message."""
        provider = self.provider
        if provider is None:
            logger.info("No email provider configured; skipped '%s' to %s", subject, to_email)
            return False
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    provider.url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=provider.payload(self, to_email, subject, body),
                    timeout=self.timeout,
                )
        except httpx.HTTPError:
            logger.exception("%s send to %s failed", provider.name, to_email)
            return False
        if resp.status_code in provider.accepted:
            logger.info("%s email sent to %s", provider.name, to_email)
            return True
        logger.warning("%s rejected mail to %s: %s %s", provider.name, to_email, resp.status_code, resp.text)
        return False
