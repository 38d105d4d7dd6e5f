"""Authentication dependency and /auth/me."""

from grievance_api.services import directory_service


async def test_me_returns_current_roles(client, hostel_head, auth_headers):
    res = await client.get("/auth/me", headers=auth_headers(hostel_head))
    assert res.status_code == 200
    body = res.json()
    assert body["user_id"] == str(hostel_head.id)
    [role] = body["roles"]
    assert role["role_name"] == "department_head"
    assert role["department_name"] == "Hostel"


async def test_bearer_header_is_accepted(client, student, auth_headers):
    token = auth_headers(student)["x-auth-token"]
    res = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200


async def test_revoked_session_is_rejected(client, db, student, auth_headers):
    headers = auth_headers(student)
    directory_service.revoke_sessions(db, student)
    db.commit()

    res = await client.get("/auth/me", headers=headers)
    assert res.status_code == 401
    assert res.json()["detail"] == "Session revoked"


async def test_health(client):
    res = await client.get("/health")
    assert res.json()["status"] == "ok"


async def test_request_id_is_echoed(client):
    res = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert res.headers["X-Request-ID"] == "req-123"
