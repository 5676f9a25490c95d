"""
Authentication service layer
"""
import hashlib
import re
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from jose import jwt, JWTError
from passlib.context import CryptContext
import structlog

from veriboard.core.config import settings
from veriboard.core.exceptions import AccountExists, ValidationError
from veriboard.models.user import User, AccountType
from veriboard.models.candidate import Candidate
from veriboard.models.company import Company
from veriboard.otp.service import normalize_email

logger = structlog.get_logger()

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}

_dummy_hash: Optional[str] = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def parse_duration(value: str) -> timedelta:
    """Parse JWT_EXPIRES_IN style durations: '7d', '12h', '30m', '45s' or bare seconds"""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def access_token_lifetime() -> timedelta:
    return parse_duration(settings.JWT_EXPIRES_IN)


def create_token(data: dict, token_type: str, expires_delta: timedelta) -> str:
    """Create a signed JWT of the given type"""
    to_encode = data.copy()
    expire = datetime.utcnow() + expires_delta
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, token_type: str) -> Dict[str, Any]:
    """Decode a JWT and check its type. Raises JWTError on any mismatch."""
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != token_type:
        raise JWTError("Invalid token type")
    return payload


def create_access_token(user: User) -> str:
    """Session token for an account"""
    return create_token(
        {"sub": str(user.id), "account_type": user.account_type},
        "access",
        access_token_lifetime(),
    )


def create_registration_token(
    email: str,
    name: str,
    hashed_password: str,
    account_type: str,
    company_name: Optional[str] = None,
) -> str:
    """Signed pending-registration payload, echoed back at email verification"""
    return create_token(
        {
            "sub": normalize_email(email),
            "name": name,
            "hashed_password": hashed_password,
            "account_type": account_type,
            "company_name": company_name,
        },
        "registration",
        timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
    )


def password_fingerprint(user: User) -> str:
    """Changes whenever the password does, which retires outstanding reset tokens"""
    return hashlib.sha256(user.hashed_password.encode()).hexdigest()[:16]


def create_reset_token(user: User) -> str:
    return create_token(
        {"sub": str(user.id), "pwd": password_fingerprint(user)},
        "password_reset",
        timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
    )


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get user by email"""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Authenticate user with email and password.
    Unknown emails still pay for one bcrypt comparison.
    """
    global _dummy_hash
    user = get_user_by_email(db, email)
    if not user:
        if _dummy_hash is None:
            _dummy_hash = get_password_hash("not-a-real-password")
        verify_password(password, _dummy_hash)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return slug.strip("-")


def create_account(
    db: Session,
    email: str,
    hashed_password: str,
    name: str,
    account_type: str,
    company_name: Optional[str] = None,
    is_verified: bool = False,
) -> User:
    """Create an account plus its candidate or company profile in one transaction"""
    email = normalize_email(email)
    if account_type not in (AccountType.CANDIDATE.value, AccountType.COMPANY.value):
        raise ValidationError("Invalid account type")
    if get_user_by_email(db, email):
        raise AccountExists()
    
    user = User(
        email=email,
        hashed_password=hashed_password,
        name=name,
        account_type=account_type,
        is_verified=is_verified,
    )
    db.add(user)
    
    if account_type == AccountType.CANDIDATE.value:
        user.candidate = Candidate(full_name=name)
    else:
        display = company_name or name or email.split("@")[0]
        user.company = Company(name=display, slug=slugify(display))
    
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("account_create_conflict", email=email)
        raise AccountExists()
    db.refresh(user)
    
    logger.info("user_created", user_id=user.id, email=email, account_type=account_type)
    return user


def set_password(db: Session, user: User, new_password: str):
    """Rotate the account secret"""
    user.hashed_password = get_password_hash(new_password)
    db.commit()
    logger.info("password_reset", user_id=user.id)


def update_user_last_login(db: Session, user: User):
    """Update user's last login timestamp"""
    user.last_login = datetime.utcnow()
    db.commit()
