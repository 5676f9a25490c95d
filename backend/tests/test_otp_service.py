"""
One-time code issuer
"""
from datetime import datetime, timedelta

import pytest

from veriboard.core.exceptions import InvalidOrExpiredCode, RateLimitError
from veriboard.core import redis_client
from veriboard.models.otp import OneTimeCode, OtpPurpose
from veriboard.otp import service as otp_service


def fixed_codes(monkeypatch, *codes):
    pending = list(codes)
    monkeypatch.setattr(otp_service, "generate_code", lambda length=None: pending.pop(0))


def test_generate_code_is_six_digits():
    for _ in range(200):
        code = otp_service.generate_code()
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


def test_normalize_email_trims_and_lowercases():
    assert otp_service.normalize_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"


def test_code_is_stored_with_ten_minute_expiry(db):
    before = datetime.utcnow()
    otp_service.request_code(db, "jane@example.com", OtpPurpose.REGISTER)
    row = db.query(OneTimeCode).one()
    assert row.purpose == "register"
    assert timedelta(minutes=9, seconds=59) <= row.expires_at - before <= timedelta(minutes=10, seconds=5)


def test_new_request_invalidates_previous_code(db, monkeypatch):
    fixed_codes(monkeypatch, "111111", "222222")
    otp_service.request_code(db, "jane@example.com", OtpPurpose.REGISTER)
    otp_service.request_code(db, "jane@example.com", OtpPurpose.REGISTER)

    assert db.query(OneTimeCode).count() == 1
    with pytest.raises(InvalidOrExpiredCode):
        otp_service.verify_code(db, "jane@example.com", "111111", OtpPurpose.REGISTER)
    otp_service.verify_code(db, "jane@example.com", "222222", OtpPurpose.REGISTER)


def test_codes_for_other_purposes_survive_a_new_request(db, monkeypatch):
    fixed_codes(monkeypatch, "111111", "222222")
    otp_service.request_code(db, "jane@example.com", OtpPurpose.LOGIN_2FA)
    otp_service.request_code(db, "jane@example.com", OtpPurpose.RESET_PASSWORD)

    otp_service.verify_code(db, "jane@example.com", "111111", OtpPurpose.LOGIN_2FA)
    otp_service.verify_code(db, "jane@example.com", "222222", OtpPurpose.RESET_PASSWORD)


def test_code_is_single_use(db):
    code = otp_service.request_code(db, "jane@example.com", OtpPurpose.LOGIN_2FA)
    otp_service.verify_code(db, "jane@example.com", code, OtpPurpose.LOGIN_2FA)
    with pytest.raises(InvalidOrExpiredCode):
        otp_service.verify_code(db, "jane@example.com", code, OtpPurpose.LOGIN_2FA)


def test_expired_code_is_rejected(db):
    code = otp_service.request_code(db, "jane@example.com", OtpPurpose.REGISTER)
    row = db.query(OneTimeCode).one()
    row.expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.commit()

    with pytest.raises(InvalidOrExpiredCode):
        otp_service.verify_code(db, "jane@example.com", code, OtpPurpose.REGISTER)


def test_code_is_scoped_to_purpose(db):
    code = otp_service.request_code(db, "jane@example.com", OtpPurpose.REGISTER)
    with pytest.raises(InvalidOrExpiredCode):
        otp_service.verify_code(db, "jane@example.com", code, OtpPurpose.RESET_PASSWORD)


def test_email_normalized_in_both_directions(db):
    code = otp_service.request_code(db, "  Jane@Example.com", OtpPurpose.REGISTER)
    assert db.query(OneTimeCode).one().email == "jane@example.com"
    otp_service.verify_code(db, "JANE@example.COM ", f" {code} ", OtpPurpose.REGISTER)


def test_issuance_is_rate_limited_per_minute(db):
    for _ in range(3):
        otp_service.request_code(db, "jane@example.com", OtpPurpose.REGISTER)
    with pytest.raises(RateLimitError) as exc_info:
        otp_service.request_code(db, "jane@example.com", OtpPurpose.REGISTER)
    assert exc_info.value.status_code == 429

    # Other purposes and other emails have their own windows
    otp_service.request_code(db, "jane@example.com", OtpPurpose.RESET_PASSWORD)
    otp_service.request_code(db, "john@example.com", OtpPurpose.REGISTER)


class BrokenRedis:
    def incr(self, key):
        raise ConnectionError("redis down")

    def delete(self, key):
        raise ConnectionError("redis down")


def test_rate_limit_fails_open_without_redis(db, monkeypatch):
    monkeypatch.setattr(redis_client, "redis_client", BrokenRedis())
    for _ in range(5):
        code = otp_service.request_code(db, "jane@example.com", OtpPurpose.REGISTER)
    otp_service.verify_code(db, "jane@example.com", code, OtpPurpose.REGISTER)


def test_too_many_wrong_guesses_invalidate_the_code(db, monkeypatch):
    fixed_codes(monkeypatch, "123456")
    otp_service.request_code(db, "jane@example.com", OtpPurpose.LOGIN_2FA)
    for _ in range(5):
        with pytest.raises(InvalidOrExpiredCode):
            otp_service.verify_code(db, "jane@example.com", "000000", OtpPurpose.LOGIN_2FA)

    with pytest.raises(InvalidOrExpiredCode):
        otp_service.verify_code(db, "jane@example.com", "123456", OtpPurpose.LOGIN_2FA)


def test_purge_removes_only_expired_codes(db):
    otp_service.request_code(db, "old@example.com", OtpPurpose.REGISTER)
    otp_service.request_code(db, "new@example.com", OtpPurpose.REGISTER)
    old = db.query(OneTimeCode).filter(OneTimeCode.email == "old@example.com").one()
    old.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    assert otp_service.purge_expired_codes(db) == 1
    assert [row.email for row in db.query(OneTimeCode).all()] == ["new@example.com"]
