from datetime import timedelta

import jwt
import pytest

from src.attendance_ledger.attendance_ledger.auth.tokens import QR_TYPE, TokenService
from src.attendance_ledger.attendance_ledger.core.enums import Role
from src.attendance_ledger.attendance_ledger.core.exceptions import ValidationError


def test_qr_token_valid_until_expiry(tokens, clock):
    issued = tokens.issue_attendance_token(expires_in_minutes=5)
    assert issued.expires_in_minutes == 5

    clock.now = issued.issued_at + timedelta(minutes=4)
    claims = tokens.verify_attendance(issued.value)
    assert claims["purpose"] == "attendance"
    assert claims["typ"] == QR_TYPE

    clock.now = issued.issued_at + timedelta(minutes=6)
    assert tokens.verify_attendance(issued.value) is None
    assert tokens.verify(issued.value) is None


def test_token_is_invalid_exactly_at_expiry(tokens, clock):
    issued = tokens.issue_attendance_token(expires_in_minutes=1)

    clock.now = issued.expires_at
    assert tokens.verify(issued.value) is None


@pytest.mark.parametrize("minutes", [0, -5, 1441, "soon"])
def test_qr_expiry_must_be_within_bounds(tokens, minutes):
    with pytest.raises(ValidationError):
        tokens.issue_attendance_token(expires_in_minutes=minutes)


def test_qr_expiry_accepts_full_day(tokens):
    assert tokens.issue_attendance_token(expires_in_minutes=1440).expires_in_minutes == 1440


def test_identity_token_round_trip(tokens):
    token = tokens.issue_identity_token(7, "john.doe@company.com", Role.EMPLOYEE)

    identity = tokens.verify_identity(token)
    assert identity.user_id == 7
    assert identity.email == "john.doe@company.com"
    assert identity.role == Role.EMPLOYEE
    assert not identity.is_admin


def test_identity_token_expires_after_a_day(tokens, clock):
    token = tokens.issue_identity_token(1, "admin@company.com", Role.ADMIN)

    clock.now = clock.now + timedelta(hours=23, minutes=59)
    assert tokens.verify_identity(token).is_admin

    clock.now = clock.now + timedelta(minutes=2)
    assert tokens.verify_identity(token) is None


def test_token_types_are_not_interchangeable(tokens):
    qr = tokens.issue_attendance_token().value
    identity = tokens.issue_identity_token(1, "a@b.co", Role.ADMIN)

    assert tokens.verify_identity(qr) is None
    assert tokens.verify_attendance(identity) is None


def test_qr_purpose_must_be_attendance(tokens):
    with pytest.raises(ValidationError):
        tokens.issue_attendance_token(purpose="warehouse")


def test_qr_with_foreign_purpose_is_not_redeemable(tokens, clock):
    exp = int((clock.now + timedelta(minutes=5)).timestamp())
    foreign = jwt.encode(
        {"typ": QR_TYPE, "purpose": "warehouse", "exp": exp},
        "unit-test-secret-0123456789abcdef0123456789",
        algorithm="HS256",
    )

    assert tokens.verify_attendance(foreign) is None
    assert tokens.verify_attendance(foreign, purpose="warehouse") is not None


def test_foreign_signature_and_garbage_are_rejected(tokens, clock):
    other = TokenService("another-secret-0123456789abcdef0123456789", clock=clock)
    forged = other.issue_attendance_token().value

    assert tokens.verify(forged) is None
    assert tokens.verify("not-a-jwt") is None
    assert tokens.verify("") is None
    assert tokens.verify(None) is None


def test_token_without_exp_is_rejected(tokens):
    no_exp = jwt.encode({"typ": QR_TYPE, "purpose": "attendance"}, "unit-test-secret-0123456789abcdef0123456789", algorithm="HS256")

    assert tokens.verify(no_exp) is None


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        TokenService("")
