# snfoods/core/email_client.py
"""
Email client utilities for the SN Foods backend.

Responsibilities:
  - Send transactional email through the SendGrid v3 HTTP API.
  - Provide a single send_email(...) function for services to use.
  - Bound every call with REMOTE_TIMEOUT_SECONDS.

Typical .env configuration:

    SENDGRID_API_KEY=SG.xxxxx
    EMAIL_FROM_ADDRESS=orders@snfoods.com.au
    EMAIL_FROM_NAME=SN Foods
"""
from __future__ import annotations

import logging

import httpx

from snfoods.core.config import get_settings
from snfoods.core.errors import DispatchError, RemoteTimeoutError

logger = logging.getLogger(__name__)


def build_sendgrid_payload(
    to_email: str,
    subject: str,
    html_body: str,
    to_name: str | None = None,
) -> dict:
    """
    SendGrid v3 mail/send request body for a single recipient.
    """
    settings = get_settings()

    to: dict[str, str] = {"email": to_email}
    if to_name:
        to["name"] = to_name

    return {
        "personalizations": [{"to": [to], "subject": subject}],
        "from": {
            "email": settings.EMAIL_FROM_ADDRESS,
            "name": settings.EMAIL_FROM_NAME,
        },
        "content": [{"type": "text/html", "value": html_body}],
    }


def send_email(
    to_email: str,
    subject: str,
    html_body: str,
    to_name: str | None = None,
    client: httpx.Client | None = None,
) -> None:
    """
    Send an HTML email to a single recipient.

    Parameters
    ----------
    to_email:
        Recipient email address.
    subject:
        Email subject line.
    html_body:
        HTML body.
    to_name:
        Optional recipient display name.
    client:
        Optional pre-configured httpx.Client (tests pass one with a
        MockTransport). A short-lived client is created otherwise.

    Raises
    ------
    DispatchError:
        If the API key is missing or the API answers with a non-2xx status.
        The message carries the response body for diagnostics.
    RemoteTimeoutError:
        If the API does not answer within REMOTE_TIMEOUT_SECONDS.
    """
    settings = get_settings()
    if not settings.SENDGRID_API_KEY:
        raise DispatchError("SENDGRID_API_KEY is not configured")

    payload = build_sendgrid_payload(to_email, subject, html_body, to_name)
    headers = {"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"}

    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=settings.REMOTE_TIMEOUT_SECONDS)

    try:
        response = client.post(settings.SENDGRID_API_URL, json=payload, headers=headers)
    except httpx.TimeoutException as exc:
        raise RemoteTimeoutError("Email API timed out") from exc
    except httpx.HTTPError as exc:
        raise DispatchError(f"Email API request failed: {exc}") from exc
    finally:
        if owns_client:
            client.close()

    if not response.is_success:
        raise DispatchError(
            f"Email API error: {response.status_code} {response.reason_phrase} - {response.text}"
        )

    logger.info("Email sent to %s (%s)", to_email, subject)
