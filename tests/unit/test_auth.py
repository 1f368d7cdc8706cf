"""Unit tests for the single-admin auth gate."""

import time
from datetime import timedelta

import pytest
from jose import jwt

from auth import AuthGate, pwd_context
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, JWT_SECRET
from exceptions import AuthenticationError


@pytest.fixture
def gate(settings):
    return AuthGate(settings)


@pytest.mark.unit
def test_login_issues_admin_token(gate):
    token = gate.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    claims = gate.verify(token)

    assert claims.id == "admin"
    assert claims.email == ADMIN_EMAIL
    assert claims.role == "admin"


@pytest.mark.unit
def test_token_expires_after_seven_days(gate):
    payload = jwt.decode(gate.login(ADMIN_EMAIL, ADMIN_PASSWORD), JWT_SECRET, algorithms=["HS256"])
    remaining = payload["exp"] - time.time()

    assert timedelta(days=7) - timedelta(minutes=1) < timedelta(seconds=remaining) <= timedelta(days=7)


@pytest.mark.unit
@pytest.mark.parametrize(
    "email, password",
    [
        ("someone@example.com", ADMIN_PASSWORD),
        (ADMIN_EMAIL, "wrong-password"),
        ("someone@example.com", "wrong-password"),
        (ADMIN_EMAIL.upper(), ADMIN_PASSWORD),
    ],
)
def test_login_rejects_with_generic_message(gate, email, password):
    with pytest.raises(AuthenticationError) as excinfo:
        gate.login(email, password)
    assert excinfo.value.message == "Invalid email or password"


@pytest.mark.unit
def test_password_hash_takes_precedence(make_settings):
    gate = AuthGate(make_settings(ADMIN_PASSWORD="ignored", ADMIN_PASSWORD_HASH=pwd_context.hash("hashed-one")))

    assert gate.verify(gate.login(ADMIN_EMAIL, "hashed-one")) is not None
    with pytest.raises(AuthenticationError):
        gate.login(ADMIN_EMAIL, "ignored")


@pytest.mark.unit
def test_invalid_configured_hash_rejects_login(make_settings):
    gate = AuthGate(make_settings(ADMIN_PASSWORD_HASH="not-a-hash"))
    with pytest.raises(AuthenticationError):
        gate.login(ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.mark.unit
def test_expired_token_is_rejected(gate):
    token = gate.create_access_token(
        {"id": "admin", "email": ADMIN_EMAIL, "role": "admin"}, expires_delta=timedelta(seconds=-10)
    )
    assert gate.verify(token) is None


@pytest.mark.unit
def test_token_from_other_secret_is_rejected(gate):
    forged = jwt.encode({"id": "admin", "email": ADMIN_EMAIL, "role": "admin"}, "another-secret", algorithm="HS256")
    assert gate.verify(forged) is None


@pytest.mark.unit
def test_token_without_admin_role_is_rejected(gate):
    token = gate.create_access_token({"id": "x", "email": ADMIN_EMAIL, "role": "reader"})
    assert gate.verify(token) is None


@pytest.mark.unit
@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Basic abc", "Bearer not.a.jwt"])
def test_bad_headers_mean_anonymous(gate, header):
    assert gate.claims_from_header(header) is None


@pytest.mark.unit
def test_bearer_header(gate):
    token = gate.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert gate.claims_from_header(f"Bearer {token}").role == "admin"
