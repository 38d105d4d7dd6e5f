"""
Status-change email to the submitter, sent through the Resend HTTP API.

Delivery is best-effort: it runs after the status change has committed and
any failure is logged, never raised.
"""

from __future__ import annotations

import html
import logging

import httpx

from grievance_api.core.config import settings
from grievance_api.services.http_service import request_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 20.0


def build_status_email(
    full_name: str,
    ticket_id: str,
    title: str,
    status: str,
    reason: str | None = None,
) -> tuple[str, str]:
    """Return (subject, html body) for a status update."""
    link = f"{settings.FRONTEND_URL.rstrip('/')}/grievance/{ticket_id}"
    subject = f"Update on your grievance #{ticket_id}: {status}"
    parts = [
        f"<p>Dear {html.escape(full_name)},</p>",
        f"<p>The status of your grievance <strong>{html.escape(title)}</strong> "
        f"(#{html.escape(ticket_id)}) is now <strong>{html.escape(status)}</strong>.</p>",
    ]
    if reason:
        parts.append(f"<p>Remarks: {html.escape(reason)}</p>")
    parts.append(f'<p><a href="{html.escape(link)}">View your grievance</a></p>')
    return subject, "\n".join(parts)


async def send_status_email(
    to_email: str,
    full_name: str,
    ticket_id: str,
    title: str,
    status: str,
    reason: str | None = None,
    idempotency_key: str | None = None,
) -> bool:
    """Send one status email. Returns True when Resend accepted it."""
    if not settings.status_emails_configured:
        return False

    subject, body = build_status_email(full_name, ticket_id, title, status, reason)
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "html": body,
    }
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    if idempotency_key:
        headers["Idempotency-Key"] = idempotency_key

    try:
        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:
            response = await request_with_retries(
                lambda: client.post(RESEND_SEND_URL, json=payload, headers=headers)
            )
    except httpx.HTTPError:
        logger.warning("Status email for %s failed", ticket_id, exc_info=True)
        return False

    if response.status_code >= 400:
        logger.warning(
            "Status email for %s rejected by Resend: %s", ticket_id, response.status_code
        )
        return False

    logger.info("Status email for %s sent", ticket_id)
    return True
