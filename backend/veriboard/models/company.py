"""
Company profile and company verification models
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from veriboard.core.database import Base


class Company(Base):
    """Company profile; carries its own verification lifecycle"""
    
    __tablename__ = "companies"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), index=True)
    
    # Verification (null until a document is submitted)
    verification_status = Column(String(20), index=True)  # pending, in_review, verified, rejected
    document_url = Column(String(1000))
    rejection_reason = Column(Text)
    verification_notes = Column(Text)
    verified_by = Column(Integer, ForeignKey("users.id"))
    verified_at = Column(DateTime(timezone=True))
    
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    # Relationships
    user = relationship("User", back_populates="company", foreign_keys=[user_id])
    employments = relationship("EmploymentRecord", back_populates="company")

    @property
    def is_verified(self) -> bool:
        return self.verification_status == "verified"
