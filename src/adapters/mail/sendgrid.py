"""
SendGrid notifier adapter - Implements Notifier protocol.

Delivers the activation email through the SendGrid v3 mail/send API.
A non-2xx response returns False; a transport failure raises
NotifierFailure. Neither is allowed to fail the signup itself.
"""

from __future__ import annotations

import logging
from html import escape

import httpx

from src.domain.exceptions import NotifierFailure
from src.domain.ports import MigrationType

logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

SUBJECT = "Welcome to Vilara - Activate Your Account"

_MIGRATION_MESSAGES = {
    MigrationType.FRESH: "We're excited to be your AI ERP Assistant!",
    MigrationType.ENHANCE: "Ready to enhance your existing ERP capabilities!",
    MigrationType.FULL: "Let's transform your ERP experience together!",
}


def _expiry_phrase(ttl_hours: int) -> str:
    return "1 hour" if ttl_hours == 1 else f"{ttl_hours} hours"


def _build_plain_text(
    first_name: str,
    activation_link: str,
    migration_type: MigrationType,
    company_name: str,
    ttl_hours: int,
) -> str:
    return (
        f"Welcome to Vilara, {first_name}!\n\n"
        f"{_MIGRATION_MESSAGES[migration_type]}\n\n"
        f"Thank you for choosing Vilara for {company_name}.\n\n"
        f"Activate your account by visiting:\n{activation_link}\n\n"
        f"This link expires in {_expiry_phrase(ttl_hours)}.\n\n"
        f"If you didn't sign up for Vilara, please ignore this email."
    )


def _build_html(
    first_name: str,
    activation_link: str,
    migration_type: MigrationType,
    company_name: str,
    ttl_hours: int,
) -> str:
    link = escape(activation_link, quote=True)
    return f"""\
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family:system-ui,-apple-system,sans-serif;">
  <div style="max-width:600px;margin:0 auto;padding:20px;">
    <h1>Welcome to Vilara, {escape(first_name)}!</h1>
    <p>{escape(_MIGRATION_MESSAGES[migration_type])}</p>
    <p>Thank you for choosing Vilara for {escape(company_name)}.</p>
    <p>Click the button below to activate your account and get started:</p>
    <a href="{link}"
       style="display:inline-block;padding:15px 30px;background:#667eea;color:#ffffff;
              text-decoration:none;border-radius:5px;">Activate Your Account</a>
    <p style="color:#666;font-size:14px;">
      Or copy and paste this link into your browser:<br><code>{link}</code>
    </p>
    <p><strong>This activation link expires in {_expiry_phrase(ttl_hours)}.</strong></p>
    <p style="color:#666;font-size:12px;">
      If you didn't sign up for Vilara, please ignore this email.
    </p>
  </div>
</body>
</html>"""


class SendGridNotifier:
    """
    Implements Notifier protocol via the SendGrid HTTP API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    An httpx.Client can be injected; otherwise one is created per message.
    """

    def __init__(
        self,
        api_key: str,
        email_from: str,
        from_name: str,
        timeout_seconds: float = 10.0,
        token_ttl_hours: int = 24,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key
        self._email_from = email_from
        self._from_name = from_name
        self._timeout_seconds = timeout_seconds
        self._token_ttl_hours = token_ttl_hours
        self._client = client

    def send(
        self,
        to_email: str,
        first_name: str,
        activation_link: str,
        migration_type: MigrationType,
        company_name: str,
    ) -> bool:
        """
        Send the activation email.

        Returns:
            True on a 2xx response, False if SendGrid rejected the message

        Raises:
            NotifierFailure: SendGrid could not be reached
        """
        payload = {
            "personalizations": [
                {"to": [{"email": to_email, "name": first_name}], "subject": SUBJECT}
            ],
            "from": {"email": self._email_from, "name": self._from_name},
            "content": [
                {
                    "type": "text/plain",
                    "value": _build_plain_text(
                        first_name,
                        activation_link,
                        migration_type,
                        company_name,
                        self._token_ttl_hours,
                    ),
                },
                {
                    "type": "text/html",
                    "value": _build_html(
                        first_name,
                        activation_link,
                        migration_type,
                        company_name,
                        self._token_ttl_hours,
                    ),
                },
            ],
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._client is not None:
                response = self._client.post(SENDGRID_API_URL, json=payload, headers=headers)
            else:
                with httpx.Client(timeout=self._timeout_seconds) as client:
                    response = client.post(SENDGRID_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NotifierFailure(f"SendGrid request failed: {e}") from e

        if not response.is_success:
            logger.error("SendGrid error %d: %s", response.status_code, response.text)
            return False
        logger.info("Activation email sent to %s", to_email)
        return True
