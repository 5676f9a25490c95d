"""
Employment history models
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Date, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from veriboard.core.database import Base


class EmploymentRecord(Base):
    """A position held by a candidate, verifiable by the employer or an admin"""
    
    __tablename__ = "employment_history"
    
    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), index=True)
    company_name = Column(String(255))  # as typed by the candidate
    
    position = Column(String(255), nullable=False)
    location = Column(String(255))
    start_date = Column(Date)
    end_date = Column(Date)
    is_current = Column(Boolean, default=False)
    
    # Verification
    verification_status = Column(String(20), nullable=False, default="pending", index=True)
    verification_type = Column(String(20), default="manual")  # manual, auto
    document_url = Column(String(1000))
    rejection_reason = Column(Text)
    verification_notes = Column(Text)
    verified_by = Column(Integer, ForeignKey("users.id"))
    verified_at = Column(DateTime(timezone=True))
    
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    # Relationships
    candidate = relationship("Candidate", back_populates="employments")
    company = relationship("Company", back_populates="employments")
