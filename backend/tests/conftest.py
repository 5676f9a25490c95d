"""
Shared fixtures: in-memory database, fake Redis, API client
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-veriboard-suite-0123456789")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import fakeredis
import pytest
from fastapi.testclient import TestClient

import veriboard.models  # noqa: F401
from veriboard.core import redis_client
from veriboard.core.config import settings
from veriboard.core.database import Base, SessionLocal, engine
from veriboard.auth.service import create_access_token, get_password_hash
from veriboard.main import app
from veriboard.models import Candidate, Company, OneTimeCode, User


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_OTP_ON_LOGIN", False)
    monkeypatch.setattr(settings, "REQUIRE_OTP_ON_REGISTER", True)
    monkeypatch.setattr(settings, "OTP_REQUESTS_PER_MINUTE", 3)
    monkeypatch.setattr(settings, "OTP_MAX_VERIFY_ATTEMPTS", 5)
    monkeypatch.setattr(settings, "SMTP_HOST", None)
    monkeypatch.setattr(settings, "SMTP_USER", None)
    monkeypatch.setattr(settings, "SMTP_PORT", None)
    monkeypatch.setattr(settings, "SMTP_SECURE", None)
    monkeypatch.setattr(settings, "POSTMARK_API_KEY", None)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    server = fakeredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(redis_client, "redis_client", server)
    return server


@pytest.fixture(autouse=True)
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def latest_code(db, email, purpose):
    db.expire_all()
    row = (
        db.query(OneTimeCode)
        .filter(OneTimeCode.email == email, OneTimeCode.purpose == purpose)
        .first()
    )
    return row.code if row else None


def make_user(db, email, password="correct-horse-9", account_type="candidate", name="Test User", **extra):
    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        name=name,
        account_type=account_type,
        **extra,
    )
    db.add(user)
    db.flush()
    if account_type == "candidate":
        db.add(Candidate(user_id=user.id, full_name=name))
    db.commit()
    db.refresh(user)
    return user


def make_company(db, email, name, verification_status="verified"):
    user = make_user(db, email, account_type="company", name=name)
    company = Company(user_id=user.id, name=name, slug=name.lower().replace(" ", "-"),
                      verification_status=verification_status)
    db.add(company)
    db.commit()
    db.refresh(company)
    return user, company


def auth_header(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}
