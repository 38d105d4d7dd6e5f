"""Best-effort status email and HTTP retries."""

import httpx
import pytest

from grievance_api.core.config import settings
from grievance_api.services import email_service, http_service


@pytest.fixture
def no_sleep(monkeypatch):
    async def _sleep(_delay):
        return None

    monkeypatch.setattr(http_service.asyncio, "sleep", _sleep)


async def test_retries_retryable_status_then_succeeds(no_sleep):
    responses = iter([httpx.Response(503), httpx.Response(200)])
    calls = []

    async def send():
        calls.append(1)
        return next(responses)

    response = await http_service.request_with_retries(send)
    assert response.status_code == 200
    assert len(calls) == 2


async def test_transport_error_on_last_attempt_propagates(no_sleep):
    async def send():
        raise httpx.ConnectError("down")

    with pytest.raises(httpx.ConnectError):
        await http_service.request_with_retries(send, max_attempts=2)


async def test_client_error_is_not_retried(no_sleep):
    calls = []

    async def send():
        calls.append(1)
        return httpx.Response(422)

    response = await http_service.request_with_retries(send)
    assert response.status_code == 422
    assert len(calls) == 1


async def test_email_skipped_when_disabled(monkeypatch):
    monkeypatch.setattr(settings, "STATUS_EMAILS_ENABLED", False)
    sent = await email_service.send_status_email("s@uni.ac.in", "S", "GRM1", "t", "Resolved")
    assert sent is False


async def test_email_failure_is_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setattr(settings, "STATUS_EMAILS_ENABLED", True)
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")

    async def failing(send, **kwargs):
        raise httpx.ConnectError("down")

    monkeypatch.setattr(email_service, "request_with_retries", failing)

    sent = await email_service.send_status_email("s@uni.ac.in", "S", "GRM1", "t", "Resolved")

    assert sent is False
    assert "Status email for GRM1 failed" in caplog.text


def test_status_email_escapes_user_content():
    subject, body = email_service.build_status_email(
        "<b>Asha</b>", "GRM2501011234", "Fan <script>", "Rejected", reason="Dup & late"
    )
    assert subject == "Update on your grievance #GRM2501011234: Rejected"
    assert "<script>" not in body
    assert "Dup &amp; late" in body
    assert "/grievance/GRM2501011234" in body
