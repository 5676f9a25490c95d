"""
Account models
"""
import enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from veriboard.core.database import Base


class AccountType(str, enum.Enum):
    CANDIDATE = "candidate"
    COMPANY = "company"
    ADMIN = "admin"


class User(Base):
    """Account with login credentials"""
    
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored trimmed + lowercased
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255))
    account_type = Column(String(20), nullable=False, default=AccountType.CANDIDATE.value)
    
    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    
    # Metadata
    last_login = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    # Relationships
    candidate = relationship("Candidate", back_populates="user", uselist=False)
    company = relationship("Company", back_populates="user", uselist=False, foreign_keys="Company.user_id")

    @property
    def display_name(self) -> str:
        if self.candidate is not None and self.candidate.full_name:
            return self.candidate.full_name
        return self.name or self.email.split("@")[0]
