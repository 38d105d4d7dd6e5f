"""Attachment uploads."""

import pytest

from grievance_api.core.config import settings


@pytest.fixture
async def ticket(client, student, auth_headers):
    res = await client.post(
        "/grievances",
        json={"title": "Fee receipt", "description": "Receipt missing", "category": "Accounts"},
        headers=auth_headers(student),
    )
    return res.json()["ticket_id"]


async def test_submitter_uploads_and_downloads(client, ticket, student, auth_headers, upload_dir):
    headers = auth_headers(student)
    res = await client.post(
        f"/grievances/{ticket}/attachments",
        files=[("files", ("receipt.pdf", b"%PDF-1.4 test", "application/pdf"))],
        headers=headers,
    )
    assert res.status_code == 201, res.text
    [attachment] = res.json()
    assert attachment["filename"] == "receipt.pdf"
    assert attachment["file_size"] == len(b"%PDF-1.4 test")
    assert any(upload_dir.rglob("*.pdf"))

    detail = (await client.get(f"/grievances/{ticket}", headers=headers)).json()
    assert [a["id"] for a in detail["attachments"]] == [attachment["id"]]

    res = await client.get(
        f"/grievances/{ticket}/attachments/{attachment['id']}", headers=headers
    )
    assert res.status_code == 200
    assert res.content == b"%PDF-1.4 test"


async def test_disallowed_type_is_rejected(client, ticket, student, auth_headers):
    res = await client.post(
        f"/grievances/{ticket}/attachments",
        files=[("files", ("run.exe", b"MZ", "application/octet-stream"))],
        headers=auth_headers(student),
    )
    assert res.status_code == 400


async def test_too_many_files_is_rejected(client, ticket, student, auth_headers):
    files = [("files", (f"p{i}.png", b"png", "image/png")) for i in range(3)]
    res = await client.post(
        f"/grievances/{ticket}/attachments", files=files, headers=auth_headers(student)
    )
    assert res.status_code == 400


async def test_oversized_file_is_rejected(client, ticket, student, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
    res = await client.post(
        f"/grievances/{ticket}/attachments",
        files=[("files", ("big.png", b"x" * 11, "image/png"))],
        headers=auth_headers(student),
    )
    assert res.status_code == 400
    assert "exceeds" in res.json()["detail"]


async def test_outsider_cannot_upload(client, ticket, other_student, auth_headers):
    res = await client.post(
        f"/grievances/{ticket}/attachments",
        files=[("files", ("a.png", b"png", "image/png"))],
        headers=auth_headers(other_student),
    )
    assert res.status_code == 403
