"""
One-time code models
"""
import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from veriboard.core.database import Base


class OtpPurpose(str, enum.Enum):
    REGISTER = "register"
    LOGIN_2FA = "login-2fa"
    RESET_PASSWORD = "reset-password"


class OneTimeCode(Base):
    """
    Short-lived numeric code keyed by email string, not by account:
    registration codes exist before the account does.
    """
    
    __tablename__ = "otp_codes"
    __table_args__ = (
        UniqueConstraint("email", "purpose", name="uq_otp_codes_email_purpose"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    code = Column(String(12), nullable=False)
    purpose = Column(String(30), nullable=False)
    
    # Naive UTC timestamps, compared against datetime.utcnow()
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
