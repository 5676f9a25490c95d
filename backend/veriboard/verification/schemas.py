"""
Verification Pydantic schemas
"""
from typing import Optional, Literal
from pydantic import BaseModel, Field, model_validator
from datetime import date, datetime


class EmploymentCreate(BaseModel):
    """Employment record submitted with its supporting document"""
    position: str = Field(..., min_length=1, max_length=255)
    company_id: Optional[int] = None
    company_name: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: bool = False
    verification_type: Literal["manual", "auto"] = "manual"
    document_url: str = Field(..., min_length=1, max_length=1000)

    @model_validator(mode="after")
    def check_company_and_dates(self):
        if self.company_id is None and not (self.company_name and self.company_name.strip()):
            raise ValueError("company_id or company_name is required")
        if self.start_date and self.end_date and not self.is_current and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EmploymentDocumentUpdate(BaseModel):
    employment_id: int
    document_url: str = Field(..., min_length=1, max_length=1000)
    verification_type: Literal["manual", "auto"] = "manual"
    company_id: Optional[int] = None


class CompanyDocumentSubmit(BaseModel):
    document_url: str = Field(..., min_length=1, max_length=1000)


class ApproveRequest(BaseModel):
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class EmploymentResponse(BaseModel):
    """Employment record response schema"""
    id: int
    candidate_id: int
    company_id: Optional[int]
    company_name: Optional[str]
    position: str
    location: Optional[str]
    start_date: Optional[date]
    end_date: Optional[date]
    is_current: bool
    verification_status: str
    verification_type: Optional[str]
    document_url: Optional[str]
    rejection_reason: Optional[str]
    verification_notes: Optional[str]
    verified_by: Optional[int]
    verified_at: Optional[datetime]
    
    class Config:
        from_attributes = True


class VerificationRequestResponse(BaseModel):
    """An employment record with its candidate, as seen by reviewers"""
    id: int
    candidate_name: Optional[str]
    candidate_email: str
    company_id: Optional[int] = None
    company_name: Optional[str] = None
    position: str
    location: Optional[str]
    start_date: Optional[date]
    end_date: Optional[date]
    is_current: bool
    verification_status: str
    document_url: Optional[str]
    rejection_reason: Optional[str]
    verification_type: Optional[str] = None


class CompanyVerificationResponse(BaseModel):
    """Company verification state"""
    id: int
    name: str
    slug: Optional[str]
    verification_status: Optional[str]
    document_url: Optional[str]
    rejection_reason: Optional[str]
    verification_notes: Optional[str]
    verified_by: Optional[int]
    verified_at: Optional[datetime]
    
    class Config:
        from_attributes = True


class DecisionResponse(BaseModel):
    success: bool = True
    message: str
    employment: Optional[EmploymentResponse] = None
    company: Optional[CompanyVerificationResponse] = None
