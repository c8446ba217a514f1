"""Auth routes: register, login, logout, resend-verification, session."""
from sqlmodel import select

from app.models.user import ApplicationUser


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---- register ----


def test_register_creates_resident_profile(client, session, provider):
    res = client.post(
        "/api/auth/register",
        json={"email": "Jane@Example.com", "password": "long-password", "fullName": "Jane  Brown"},
    )

    assert res.status_code == 201
    body = res.json()
    assert body["code"] == "SIGNUP_SUCCESS"
    assert body["user"]["email"] == "jane@example.com"
    assert body["user"]["fullName"] == "Jane  Brown"

    row = session.exec(
        select(ApplicationUser).where(ApplicationUser.email == "jane@example.com")
    ).one()
    assert row.role == "resident"
    assert row.is_active is True
    assert row.username == "jane_brown"
    assert row.auth_id == body["user"]["id"]
    assert provider.calls == ["create_user", "invite_user_by_email"]


def test_register_missing_fields(client, provider):
    res = client.post("/api/auth/register", json={"email": "jane@example.com"})
    assert res.status_code == 400
    assert res.json()["code"] == "MISSING_FIELDS"
    assert provider.calls == []


def test_register_invalid_email_makes_no_provider_call(client, provider):
    res = client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "password": "long-password", "fullName": "Jane"},
    )
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_EMAIL"
    assert provider.calls == []


def test_register_weak_password(client):
    res = client.post(
        "/api/auth/register",
        json={"email": "jane@example.com", "password": "short", "fullName": "Jane"},
    )
    assert res.status_code == 400
    assert res.json()["code"] == "WEAK_PASSWORD"


def test_register_short_name(client):
    res = client.post(
        "/api/auth/register",
        json={"email": "jane@example.com", "password": "long-password", "fullName": "J"},
    )
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_NAME"


def test_register_existing_profile_email(client, make_user, provider):
    make_user(email="taken@example.com")
    provider.calls.clear()

    res = client.post(
        "/api/auth/register",
        json={"email": "taken@example.com", "password": "long-password", "fullName": "Jane"},
    )

    assert res.status_code == 409
    assert res.json()["code"] == "EMAIL_EXISTS"
    assert provider.calls == []


def test_register_existing_provider_account(client, provider):
    provider.add_account("orphan@example.com")

    res = client.post(
        "/api/auth/register",
        json={"email": "orphan@example.com", "password": "long-password", "fullName": "Jane"},
    )

    assert res.status_code == 409
    assert res.json()["code"] == "EMAIL_EXISTS"


# ---- login ----


def test_login_returns_session_and_profile(client, make_user, provider):
    user, _ = make_user(email="jane@example.com", role="admin")
    provider.accounts["jane@example.com"]["password"] = "correct-horse"

    res = client.post(
        "/api/auth/login", json={"email": "jane@example.com", "password": "correct-horse"}
    )

    assert res.status_code == 200
    body = res.json()
    assert body["code"] == "LOGIN_SUCCESS"
    assert body["user"]["id"] == user.auth_id
    assert body["user"]["emailVerified"] is True
    assert body["profile"] == {
        "userId": user.user_id,
        "fullName": "Test User",
        "username": "test_user",
        "role": "admin",
        "isActive": True,
    }
    assert body["session"]["accessToken"] in provider.tokens
    assert body["session"]["refreshToken"]


def test_login_without_profile_still_succeeds(client, make_user, provider):
    make_user(email="jane@example.com", with_profile=False)
    provider.accounts["jane@example.com"]["password"] = "correct-horse"

    res = client.post(
        "/api/auth/login", json={"email": "jane@example.com", "password": "correct-horse"}
    )

    assert res.status_code == 200
    assert res.json()["profile"] is None


def test_login_bad_password(client, make_user):
    make_user(email="jane@example.com")
    res = client.post(
        "/api/auth/login", json={"email": "jane@example.com", "password": "nope"}
    )
    assert res.status_code == 401
    assert res.json()["code"] == "INVALID_CREDENTIALS"


def test_login_unverified(client, provider):
    provider.add_account("jane@example.com", "correct-horse", confirmed=False)
    res = client.post(
        "/api/auth/login", json={"email": "jane@example.com", "password": "correct-horse"}
    )
    assert res.status_code == 403
    assert res.json()["code"] == "EMAIL_NOT_VERIFIED"


def test_login_missing_fields(client):
    res = client.post("/api/auth/login", json={"email": "jane@example.com"})
    assert res.status_code == 400
    assert res.json()["code"] == "MISSING_FIELDS"


# ---- logout ----


def test_logout_redirects_to_root(client, make_user, provider):
    _, token = make_user()

    res = client.post("/api/auth/logout", headers=_bearer(token), follow_redirects=False)

    assert res.status_code == 302
    assert res.headers["location"] == "/"
    assert token not in provider.tokens


def test_logout_without_header(client):
    res = client.post("/api/auth/logout", follow_redirects=False)
    assert res.status_code == 401
    assert res.json()["code"] == "NO_SESSION"


def test_logout_twice_is_invalid_session(client, make_user):
    _, token = make_user()
    first = client.post("/api/auth/logout", headers=_bearer(token), follow_redirects=False)
    second = client.post("/api/auth/logout", headers=_bearer(token), follow_redirects=False)

    assert first.status_code == 302
    assert second.status_code == 401
    assert second.json()["code"] == "INVALID_SESSION"


def test_logout_revoke_failure_still_redirects(client, make_user, provider):
    _, token = make_user()
    provider.fail_revoke = True

    res = client.post("/api/auth/logout", headers=_bearer(token), follow_redirects=False)

    assert res.status_code == 302


def test_logout_does_not_need_a_profile(client, make_user):
    _, token = make_user(with_profile=False)
    res = client.post("/api/auth/logout", headers=_bearer(token), follow_redirects=False)
    assert res.status_code == 302


# ---- resend verification ----


def test_resend_before_signup(client):
    res = client.post("/api/auth/resend-verification", json={"email": "new@user.com"})
    assert res.status_code == 404
    assert res.json()["code"] == "USER_NOT_FOUND"


def test_resend_missing_email(client):
    res = client.post("/api/auth/resend-verification", json={})
    assert res.status_code == 400
    assert res.json()["code"] == "MISSING_EMAIL"


def test_resend_without_body(client):
    res = client.post("/api/auth/resend-verification")
    assert res.status_code == 400
    assert res.json() == {
        "success": False,
        "code": "MISSING_EMAIL",
        "message": "Email is required",
    }


def test_register_ignores_form_action_field(client):
    res = client.post(
        "/api/auth/register",
        json={
            "email": "form@user.com",
            "password": "long-password",
            "fullName": "Form User",
            "action": "signup",
        },
    )
    assert res.status_code == 201
    assert res.json()["code"] == "SIGNUP_SUCCESS"


def test_malformed_body_is_structured_error(client):
    res = client.post(
        "/api/auth/login",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    body = res.json()
    assert res.status_code == 400
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert "detail" not in body


def test_resend_invalid_email(client, provider):
    res = client.post("/api/auth/resend-verification", json={"email": "not-an-email"})
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_EMAIL"
    assert provider.calls == []


def test_resend_after_signup(client):
    client.post(
        "/api/auth/register",
        json={"email": "new@user.com", "password": "long-password", "fullName": "New User"},
    )
    res = client.post("/api/auth/resend-verification", json={"email": "new@user.com"})

    assert res.status_code == 200
    assert res.json()["code"] == "VERIFICATION_SENT"
    assert res.json()["success"] is True


# ---- session ----


def test_session_info(client, make_user):
    user, token = make_user(role="resident")

    res = client.get("/api/auth/session", headers=_bearer(token))

    assert res.status_code == 200
    assert res.json()["user"]["id"] == user.auth_id
    assert res.json()["profile"]["role"] == "resident"
