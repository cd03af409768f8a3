"""Tests for auth request schemas."""

import pytest
from pydantic import ValidationError

from billpay.schemas.auth import ResetPasswordRequest, SignupRequest, sanitize_phone


def _signup(**overrides):
    data = {
        "email": "ada@example.com",
        "first_name": "Ada",
        "last_name": "Obi",
        "password": "Passw0rd",
    }
    data.update(overrides)
    return SignupRequest(**data)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("+234 801 234 5678", "+2348012345678"),
        ("(080) 1234-5678", "08012345678"),
        ("  ", ""),
    ],
)
def test_sanitize_phone(raw, expected):
    assert sanitize_phone(raw) == expected


def test_names_are_stripped():
    data = _signup(first_name="  Ada ", last_name=" Obi")

    assert data.first_name == "Ada"
    assert data.last_name == "Obi"


def test_blank_name_rejected():
    with pytest.raises(ValidationError):
        _signup(first_name="   ")


def test_blank_phone_becomes_none():
    assert _signup(phone=" ").phone is None


@pytest.mark.parametrize("phone", ["08012345678", "+0123456", "+1234567890123456"])
def test_non_e164_phone_rejected(phone):
    with pytest.raises(ValidationError):
        _signup(phone=phone)


def test_password_strength_message():
    with pytest.raises(ValidationError, match="uppercase letter"):
        _signup(password="password1")


def test_reset_request_limits_token_length():
    with pytest.raises(ValidationError):
        ResetPasswordRequest(token="x" * 257, new_password="Newpass12")
    with pytest.raises(ValidationError):
        ResetPasswordRequest(token="", new_password="Newpass12")


@pytest.mark.parametrize("password", ["Aa1" + "x" * 77, "Aa1" + "é" * 40])
def test_password_over_72_bytes_rejected(password):
    with pytest.raises(ValidationError, match="72 bytes"):
        _signup(password=password)
    with pytest.raises(ValidationError, match="72 bytes"):
        ResetPasswordRequest(token="tok", new_password=password)


def test_password_of_72_bytes_accepted():
    password = "Aa1" + "é" * 34 + "x"

    assert _signup(password=password).password == password
    assert ResetPasswordRequest(token="tok", new_password=password).new_password == password
