"""
One-time code issuer

Codes are scoped to (email, purpose). Issuing a new code replaces any
earlier code for the same pair; a code is consumed by the first
successful verification.
"""
import secrets
from datetime import datetime, timedelta
from typing import Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import structlog

from veriboard.core.config import settings
from veriboard.core.exceptions import InvalidOrExpiredCode, RateLimitError
from veriboard.core import redis_client
from veriboard.models.otp import OneTimeCode, OtpPurpose

logger = structlog.get_logger()

RATE_WINDOW_SECONDS = 60


def normalize_email(email: str) -> str:
    """Canonical form used everywhere an email is stored or looked up"""
    return str(email or "").strip().lower()


def generate_code(length: int = None) -> str:
    """Uniformly random numeric code without a leading zero"""
    length = length or settings.OTP_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def _purpose_value(purpose: Union[OtpPurpose, str]) -> str:
    return OtpPurpose(purpose).value


def enforce_issue_rate(email: str, purpose: Union[OtpPurpose, str]):
    """
    Cap code issuance per (purpose, email) per minute.
    Fails open when Redis is unreachable.
    """
    email = normalize_email(email)
    purpose = _purpose_value(purpose)
    key = redis_client.get_cache_key("otp:issue", purpose, email)
    count = redis_client.increment_counter(key, RATE_WINDOW_SECONDS)
    if count is None:
        return
    if count > settings.OTP_REQUESTS_PER_MINUTE:
        logger.warning("otp_rate_limited", email=email, purpose=purpose, count=count)
        raise RateLimitError(
            "Too many code requests, please wait before trying again",
            retry_after=redis_client.get_ttl(key),
        )


def request_code(
    db: Session,
    email: str,
    purpose: Union[OtpPurpose, str],
    check_rate: bool = True,
) -> str:
    """
    Issue a fresh code for (email, purpose) and return it for dispatch.
    The caller must never echo the code in an API response.
    """
    email = normalize_email(email)
    purpose = _purpose_value(purpose)
    if check_rate:
        enforce_issue_rate(email, purpose)

    code = generate_code()
    now = datetime.utcnow()
    expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)

    # Delete + insert in one transaction; the unique (email, purpose)
    # constraint turns a concurrent insert into an IntegrityError.
    for attempt in range(2):
        try:
            db.query(OneTimeCode).filter(
                OneTimeCode.email == email,
                OneTimeCode.purpose == purpose,
            ).delete(synchronize_session=False)
            db.add(
                OneTimeCode(
                    email=email,
                    code=code,
                    purpose=purpose,
                    expires_at=expires_at,
                    created_at=now,
                )
            )
            db.commit()
            break
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.warning("otp_issue_conflict_retry", email=email, purpose=purpose)

    redis_client.delete_cache(redis_client.get_cache_key("otp:fail", purpose, email))
    logger.info("otp_issued", email=email, purpose=purpose, expires_at=expires_at.isoformat())
    return code


def _record_failed_attempt(db: Session, email: str, purpose: str):
    """Count misses; too many invalidates the active code"""
    key = redis_client.get_cache_key("otp:fail", purpose, email)
    failures = redis_client.increment_counter(key, settings.OTP_EXPIRE_MINUTES * 60)
    if failures is not None and failures >= settings.OTP_MAX_VERIFY_ATTEMPTS:
        removed = db.query(OneTimeCode).filter(
            OneTimeCode.email == email,
            OneTimeCode.purpose == purpose,
        ).delete(synchronize_session=False)
        db.commit()
        redis_client.delete_cache(key)
        logger.warning("otp_locked_out", email=email, purpose=purpose, removed=removed)


def verify_code(db: Session, email: str, code: str, purpose: Union[OtpPurpose, str]):
    """
    Consume a code. Raises InvalidOrExpiredCode when no unexpired code
    matches, including when a concurrent verification consumed it first.
    """
    email = normalize_email(email)
    purpose = _purpose_value(purpose)
    code = str(code or "").strip()
    now = datetime.utcnow()

    match = (
        db.query(OneTimeCode)
        .filter(
            OneTimeCode.email == email,
            OneTimeCode.purpose == purpose,
            OneTimeCode.code == code,
            OneTimeCode.expires_at > now,
        )
        .first()
    )
    if match is None:
        logger.info("otp_verification_failed", email=email, purpose=purpose)
        _record_failed_attempt(db, email, purpose)
        raise InvalidOrExpiredCode()

    deleted = db.query(OneTimeCode).filter(
        OneTimeCode.email == email,
        OneTimeCode.purpose == purpose,
        OneTimeCode.code == code,
    ).delete(synchronize_session=False)
    db.commit()
    if not deleted:
        raise InvalidOrExpiredCode()

    redis_client.delete_cache(redis_client.get_cache_key("otp:fail", purpose, email))
    logger.info("otp_verified", email=email, purpose=purpose)


def purge_expired_codes(db: Session, now: datetime = None) -> int:
    """Delete codes past their expiry. Lookups filter on expiry regardless."""
    now = now or datetime.utcnow()
    removed = db.query(OneTimeCode).filter(
        OneTimeCode.expires_at <= now
    ).delete(synchronize_session=False)
    db.commit()
    return removed
