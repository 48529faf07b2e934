"""Registration, login, session and password reset"""

from datetime import timedelta

from haircrew.models import PasswordResetToken, User, utcnow
from haircrew.security_utils import verify_password
from tests.factories import PASSWORD


def test_register_creates_customer_and_sends_welcome_email(client, db_session, outbox):
    res = client.post(
        "/api/auth/register",
        json={"name": "Asha Rao", "email": "Asha@Example.com", "password": "Secret123"},
    )

    assert res.status_code == 200
    assert res.json() == {"success": True}

    user = db_session.query(User).filter(User.email == "asha@example.com").one()
    assert user.role == "USER"
    assert verify_password("Secret123", user.password_hash)
    assert outbox.of_kind("send_welcome_email") == [{"to": "asha@example.com", "user_name": "Asha Rao"}]


def test_register_duplicate_email_is_rejected(client, customer):
    res = client.post(
        "/api/auth/register",
        json={"name": "Someone Else", "email": customer.email, "password": "Secret123"},
    )

    assert res.status_code == 400
    assert res.json()["detail"] == "Email already in use."


def test_register_weak_password_reports_the_rule(client):
    res = client.post(
        "/api/auth/register",
        json={"name": "Asha Rao", "email": "asha@example.com", "password": "alllowercase1"},
    )

    assert res.status_code == 400
    body = res.json()
    assert body["detail"] == "Validation failed"
    assert any("uppercase" in message for message in body["errors"])


def test_rejected_input_is_audited(client, caplog):
    with caplog.at_level("WARNING", logger="haircrew.audit"):
        client.post("/api/auth/register", json={"name": "Asha Rao", "email": "", "password": "Secret123"})

    [record] = [r for r in caplog.records if r.name == "haircrew.audit"]
    assert "AUDIT_VALIDATION" in record.getMessage()
    assert "POST /api/auth/register" in record.getMessage()
    assert "Please enter a valid email address" in record.getMessage()


def test_register_survives_email_failure(client, db_session, monkeypatch):
    """The account exists even when the welcome email cannot be delivered"""
    from haircrew import email_service

    async def broken(**kwargs):
        raise email_service.EmailDeliveryError("Email service not configured")

    monkeypatch.setattr(email_service, "send_welcome_email", broken)

    res = client.post(
        "/api/auth/register",
        json={"name": "Asha Rao", "email": "asha@example.com", "password": "Secret123"},
    )

    assert res.status_code == 200
    assert db_session.query(User).filter(User.email == "asha@example.com").count() == 1


def test_login_sets_session_cookie_and_session_reflects_it(client, customer):
    res = client.post("/api/auth/login", json={"email": customer.email, "password": PASSWORD})

    assert res.status_code == 200
    body = res.json()
    assert body["token"]
    assert body["user"]["email"] == customer.email
    assert body["user"]["role"] == "USER"
    assert "session-token" in res.cookies

    session = client.get("/api/auth/session").json()
    assert session["user"]["id"] == customer.id


def test_login_with_wrong_password_is_unauthorized(client, customer):
    res = client.post("/api/auth/login", json={"email": customer.email, "password": "Wrong1234"})

    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid email or password"


def test_session_without_credentials_is_empty(client):
    assert client.get("/api/auth/session").json() == {"user": None}


def test_session_with_garbage_token_is_empty(client):
    res = client.get("/api/auth/session", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.json() == {"user": None}


def test_logout_clears_cookie(client, customer):
    client.post("/api/auth/login", json={"email": customer.email, "password": PASSWORD})

    res = client.post("/api/auth/logout")

    assert res.status_code == 200
    assert client.get("/api/auth/session").json() == {"user": None}


def test_reset_password_requires_email(client):
    res = client.post("/api/auth/reset-password", json={})

    assert res.status_code == 400
    assert res.json()["detail"] == "Email is required."


def test_reset_password_unknown_email_still_succeeds(client, db_session, outbox):
    res = client.post("/api/auth/reset-password", json={"email": "nobody@example.com"})

    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert db_session.query(PasswordResetToken).count() == 0
    assert outbox.of_kind("send_password_reset_email") == []


def test_reset_password_round_trip(client, db_session, customer, outbox):
    res = client.post("/api/auth/reset-password", json={"email": customer.email})
    assert res.status_code == 200

    [sent] = outbox.of_kind("send_password_reset_email")
    assert sent["to"] == customer.email
    token = sent["reset_link"].split("token=")[1]
    assert len(token) == 64

    record = db_session.query(PasswordResetToken).filter(PasswordResetToken.user_id == customer.id).one()
    assert record.token == token
    assert timedelta(minutes=59) < record.expires - utcnow() <= timedelta(minutes=60)

    res = client.post(
        "/api/auth/reset-password/confirm",
        json={"email": customer.email, "token": token, "password": "Brandnew123"},
    )
    assert res.status_code == 200

    db_session.refresh(customer)
    assert verify_password("Brandnew123", customer.password_hash)
    assert db_session.query(PasswordResetToken).count() == 0


def test_second_reset_request_replaces_the_token(client, db_session, customer, outbox):
    client.post("/api/auth/reset-password", json={"email": customer.email})
    client.post("/api/auth/reset-password", json={"email": customer.email})

    first, second = outbox.of_kind("send_password_reset_email")
    assert first["reset_link"] != second["reset_link"]
    assert db_session.query(PasswordResetToken).count() == 1


def test_reset_confirm_rejects_expired_token(client, db_session, customer):
    db_session.add(PasswordResetToken(user_id=customer.id, token="a" * 64, expires=utcnow() - timedelta(minutes=1)))
    db_session.commit()

    res = client.post(
        "/api/auth/reset-password/confirm",
        json={"email": customer.email, "token": "a" * 64, "password": "Brandnew123"},
    )

    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid or expired reset token"


def test_reset_confirm_rejects_token_for_another_email(client, db_session, customer, other_customer):
    db_session.add(PasswordResetToken(user_id=customer.id, token="b" * 64, expires=utcnow() + timedelta(minutes=30)))
    db_session.commit()

    res = client.post(
        "/api/auth/reset-password/confirm",
        json={"email": other_customer.email, "token": "b" * 64, "password": "Brandnew123"},
    )

    assert res.status_code == 400


def test_reset_password_is_rate_limited(client, customer, fake_redis):
    for _ in range(5):
        assert client.post("/api/auth/reset-password", json={"email": customer.email}).status_code == 200

    res = client.post("/api/auth/reset-password", json={"email": customer.email})

    assert res.status_code == 429
    assert res.json() == {"error": "Too many requests", "code": "RATE_LIMITED"}
    assert int(res.headers["Retry-After"]) >= 1
    assert res.headers["X-RateLimit-Limit"] == "5"
