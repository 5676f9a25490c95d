"""
Verification routes for candidates, employers and admins
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import structlog

from veriboard.core.database import get_db
from veriboard.auth.dependencies import require_account_type
from veriboard.models.employment import EmploymentRecord
from veriboard.models.user import User
from veriboard.verification import service
from veriboard.verification.schemas import (
    ApproveRequest,
    CompanyDocumentSubmit,
    CompanyVerificationResponse,
    DecisionResponse,
    EmploymentCreate,
    EmploymentDocumentUpdate,
    EmploymentResponse,
    RejectRequest,
    VerificationRequestResponse,
)

candidate_router = APIRouter(prefix="/api/candidates", tags=["Candidate Verification"])
company_router = APIRouter(prefix="/api/companies", tags=["Company Verification"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin"])
logger = structlog.get_logger()

STATUS_FILTER = "^(all|pending|in_review|verified|rejected)$"


def request_response(employment: EmploymentRecord) -> VerificationRequestResponse:
    candidate = employment.candidate
    return VerificationRequestResponse(
        id=employment.id,
        candidate_name=candidate.full_name or candidate.user.name,
        candidate_email=candidate.user.email,
        company_id=employment.company_id,
        company_name=employment.company_name,
        position=employment.position,
        location=employment.location,
        start_date=employment.start_date,
        end_date=employment.end_date,
        is_current=bool(employment.is_current),
        verification_status=employment.verification_status,
        document_url=employment.document_url,
        rejection_reason=employment.rejection_reason,
        verification_type=employment.verification_type,
    )


@candidate_router.get("/employment-history", response_model=List[EmploymentResponse])
def get_employment_history(
    current_user: User = Depends(require_account_type("candidate")),
    db: Session = Depends(get_db),
):
    """Candidate's employment records with verification status"""
    candidate = service.get_candidate_profile(db, current_user)
    return service.list_candidate_employments(db, candidate)


@candidate_router.post(
    "/employment-verification",
    response_model=EmploymentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_employment_verification(
    data: EmploymentCreate,
    current_user: User = Depends(require_account_type("candidate")),
    db: Session = Depends(get_db),
):
    """Add an employment record with its verification document"""
    candidate = service.get_candidate_profile(db, current_user)
    return service.create_employment(
        db,
        candidate,
        position=data.position,
        document_url=data.document_url,
        company_id=data.company_id,
        company_name=data.company_name,
        location=data.location,
        start_date=data.start_date,
        end_date=data.end_date,
        is_current=data.is_current,
        verification_type=data.verification_type,
    )


@candidate_router.post("/employment-verification/update", response_model=EmploymentResponse)
def update_employment_verification(
    data: EmploymentDocumentUpdate,
    current_user: User = Depends(require_account_type("candidate")),
    db: Session = Depends(get_db),
):
    """Attach a new document to an existing employment record"""
    candidate = service.get_candidate_profile(db, current_user)
    return service.resubmit_employment(
        db,
        candidate,
        data.employment_id,
        data.document_url,
        verification_type=data.verification_type,
        company_id=data.company_id,
    )


@company_router.post("/hr-verification", response_model=CompanyVerificationResponse)
def submit_hr_verification(
    data: CompanyDocumentSubmit,
    current_user: User = Depends(require_account_type("company")),
    db: Session = Depends(get_db),
):
    """Submit the company's verification document for admin review"""
    company = service.get_company_profile(db, current_user)
    return service.submit_company_verification(db, company, data.document_url)


@company_router.get("/verification-requests", response_model=List[VerificationRequestResponse])
def list_verification_requests(
    status: Optional[str] = Query(None, pattern=STATUS_FILTER),
    current_user: User = Depends(require_account_type("company")),
    db: Session = Depends(get_db),
):
    """Employment records claiming this company"""
    company = service.get_company_profile(db, current_user)
    return [request_response(e) for e in service.list_company_requests(db, company, status)]


@company_router.post("/verification-requests/{employment_id}/approve", response_model=DecisionResponse)
def approve_verification_request(
    employment_id: int,
    data: Optional[ApproveRequest] = None,
    current_user: User = Depends(require_account_type("company")),
    db: Session = Depends(get_db),
):
    company = service.get_company_profile(db, current_user)
    employment = service.company_approve_employment(db, company, employment_id, current_user, data.notes if data else None)
    return DecisionResponse(
        message="Employment verified successfully",
        employment=EmploymentResponse.model_validate(employment),
    )


@company_router.post("/verification-requests/{employment_id}/reject", response_model=DecisionResponse)
def reject_verification_request(
    employment_id: int,
    data: RejectRequest,
    current_user: User = Depends(require_account_type("company")),
    db: Session = Depends(get_db),
):
    company = service.get_company_profile(db, current_user)
    employment = service.company_reject_employment(db, company, employment_id, current_user, data.reason)
    return DecisionResponse(
        message="Verification request rejected",
        employment=EmploymentResponse.model_validate(employment),
    )


@admin_router.get("/employments", response_model=List[VerificationRequestResponse])
def admin_list_employments(
    status: Optional[str] = Query(None, pattern=STATUS_FILTER),
    verification_type: Optional[str] = Query(None, pattern="^(manual|auto)$"),
    current_user: User = Depends(require_account_type("admin")),
    db: Session = Depends(get_db),
):
    """Employment review queue"""
    employments = service.list_employments_for_review(db, status, verification_type)
    return [request_response(e) for e in employments]


@admin_router.get("/companies", response_model=List[CompanyVerificationResponse])
def admin_list_companies(
    status: Optional[str] = Query(None, pattern=STATUS_FILTER),
    current_user: User = Depends(require_account_type("admin")),
    db: Session = Depends(get_db),
):
    """Company review queue"""
    return service.list_companies_for_review(db, status)


@admin_router.post("/employments/{employment_id}/verify", response_model=DecisionResponse)
def admin_verify_employment(
    employment_id: int,
    data: Optional[ApproveRequest] = None,
    current_user: User = Depends(require_account_type("admin")),
    db: Session = Depends(get_db),
):
    employment = service.admin_approve_employment(db, employment_id, current_user, data.notes if data else None)
    return DecisionResponse(
        message="Employment verified successfully",
        employment=EmploymentResponse.model_validate(employment),
    )


@admin_router.post("/employments/{employment_id}/reject", response_model=DecisionResponse)
def admin_reject_employment(
    employment_id: int,
    data: RejectRequest,
    current_user: User = Depends(require_account_type("admin")),
    db: Session = Depends(get_db),
):
    employment = service.admin_reject_employment(db, employment_id, current_user, data.reason)
    return DecisionResponse(
        message="Employment rejected",
        employment=EmploymentResponse.model_validate(employment),
    )


@admin_router.post("/companies/{company_id}/verify", response_model=DecisionResponse)
def admin_verify_company(
    company_id: int,
    data: Optional[ApproveRequest] = None,
    current_user: User = Depends(require_account_type("admin")),
    db: Session = Depends(get_db),
):
    company = service.admin_approve_company(db, company_id, current_user, data.notes if data else None)
    return DecisionResponse(
        message="Company verified successfully",
        company=CompanyVerificationResponse.model_validate(company),
    )


@admin_router.post("/companies/{company_id}/reject", response_model=DecisionResponse)
def admin_reject_company(
    company_id: int,
    data: RejectRequest,
    current_user: User = Depends(require_account_type("admin")),
    db: Session = Depends(get_db),
):
    company = service.admin_reject_company(db, company_id, current_user, data.reason)
    return DecisionResponse(
        message="Company rejected",
        company=CompanyVerificationResponse.model_validate(company),
    )
