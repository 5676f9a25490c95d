"""
Verification status tracker for employment records and companies.

Both carry the same lifecycle:

    (unsubmitted) --submit--> pending | in_review --approve--> verified
                                                  --reject---> rejected

Only pending/in_review records can be decided. Rejected records may be
resubmitted with a new document; verified records are frozen.
"""
import enum
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session
import structlog

from veriboard.core.exceptions import (
    AuthorizationError,
    InvalidStatusTransition,
    NotFoundError,
    ValidationError,
)
from veriboard.models.candidate import Candidate
from veriboard.models.company import Company
from veriboard.models.employment import EmploymentRecord
from veriboard.models.user import User

logger = structlog.get_logger()


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    VERIFIED = "verified"
    REJECTED = "rejected"


class VerificationType(str, enum.Enum):
    MANUAL = "manual"
    AUTO = "auto"


DECIDABLE = {VerificationStatus.PENDING.value, VerificationStatus.IN_REVIEW.value}

Verifiable = Union[EmploymentRecord, Company]


def _current(record: Verifiable) -> str:
    return record.verification_status or "unsubmitted"


def initial_status(verification_type: str) -> str:
    """Manual review starts pending; the automatic path starts in_review"""
    if verification_type == VerificationType.AUTO.value:
        return VerificationStatus.IN_REVIEW.value
    return VerificationStatus.PENDING.value


def submit(record: Verifiable, document_url: str, verification_type: str = VerificationType.MANUAL.value):
    """Attach a document and (re)open the record for review"""
    target = initial_status(verification_type)
    if record.verification_status == VerificationStatus.VERIFIED.value:
        raise InvalidStatusTransition(_current(record), target)
    if not document_url or not document_url.strip():
        raise ValidationError("Verification document is required")
    
    record.document_url = document_url.strip()
    record.verification_status = target
    record.rejection_reason = None
    record.verified_by = None
    record.verified_at = None


def approve(record: Verifiable, actor_id: int, notes: Optional[str] = None):
    target = VerificationStatus.VERIFIED.value
    if record.verification_status not in DECIDABLE:
        raise InvalidStatusTransition(_current(record), target)
    
    record.verification_status = target
    record.verified_by = actor_id
    record.verified_at = datetime.utcnow()
    record.verification_notes = notes
    record.rejection_reason = None


def reject(record: Verifiable, actor_id: int, reason: str):
    target = VerificationStatus.REJECTED.value
    if not reason or not reason.strip():
        raise ValidationError("Rejection reason is required")
    if record.verification_status not in DECIDABLE:
        raise InvalidStatusTransition(_current(record), target)
    
    record.verification_status = target
    record.verified_by = actor_id
    record.verified_at = datetime.utcnow()
    record.rejection_reason = reason.strip()


# Profiles and lookups

def get_candidate_profile(db: Session, user: User) -> Candidate:
    candidate = db.query(Candidate).filter(Candidate.user_id == user.id).first()
    if not candidate:
        raise NotFoundError("Candidate profile")
    return candidate


def get_company_profile(db: Session, user: User) -> Company:
    company = db.query(Company).filter(Company.user_id == user.id).first()
    if not company:
        raise NotFoundError("Company")
    return company


def resolve_company_by_name(db: Session, name: Optional[str]) -> Optional[Company]:
    """
    Case-insensitive, trimmed name match among verified companies.
    Only used to link a new record to a company; never for authorization.
    """
    if not name or not name.strip():
        return None
    return (
        db.query(Company)
        .filter(
            func.lower(func.trim(Company.name)) == name.strip().lower(),
            Company.verification_status == VerificationStatus.VERIFIED.value,
        )
        .order_by(Company.id)
        .first()
    )


def _resolve_company(db: Session, company_id: Optional[int], company_name: Optional[str]) -> Optional[Company]:
    if company_id is not None:
        company = db.query(Company).filter(Company.id == company_id).first()
        if not company:
            raise NotFoundError("Company", str(company_id))
        if not company.is_verified:
            raise ValidationError("Employment can only be linked to a verified company")
        return company
    return resolve_company_by_name(db, company_name)


def _get_employment(db: Session, employment_id: int) -> EmploymentRecord:
    employment = db.query(EmploymentRecord).filter(EmploymentRecord.id == employment_id).first()
    if not employment:
        raise NotFoundError("Employment record", str(employment_id))
    return employment


# Candidate side

def create_employment(
    db: Session,
    candidate: Candidate,
    position: str,
    document_url: str,
    company_id: Optional[int] = None,
    company_name: Optional[str] = None,
    location: Optional[str] = None,
    start_date=None,
    end_date=None,
    is_current: bool = False,
    verification_type: str = VerificationType.MANUAL.value,
) -> EmploymentRecord:
    """Add an employment record and submit it for verification"""
    company = _resolve_company(db, company_id, company_name)
    employment = EmploymentRecord(
        candidate_id=candidate.id,
        company_id=company.id if company else None,
        company_name=company_name or (company.name if company else None),
        position=position,
        location=location,
        start_date=start_date,
        end_date=None if is_current else end_date,
        is_current=is_current,
        verification_type=verification_type,
    )
    submit(employment, document_url, verification_type)
    db.add(employment)
    db.commit()
    db.refresh(employment)
    
    logger.info(
        "employment_submitted",
        employment_id=employment.id,
        candidate_id=candidate.id,
        company_id=employment.company_id,
        status=employment.verification_status,
    )
    return employment


def resubmit_employment(
    db: Session,
    candidate: Candidate,
    employment_id: int,
    document_url: str,
    verification_type: str = VerificationType.MANUAL.value,
    company_id: Optional[int] = None,
) -> EmploymentRecord:
    """Attach a new document to one of the candidate's own records"""
    employment = (
        db.query(EmploymentRecord)
        .filter(
            EmploymentRecord.id == employment_id,
            EmploymentRecord.candidate_id == candidate.id,
        )
        .first()
    )
    if not employment:
        raise NotFoundError("Employment record", str(employment_id))
    
    if company_id is not None:
        employment.company_id = _resolve_company(db, company_id, None).id
    employment.verification_type = verification_type
    submit(employment, document_url, verification_type)
    db.commit()
    db.refresh(employment)
    
    logger.info(
        "employment_resubmitted",
        employment_id=employment.id,
        status=employment.verification_status,
    )
    return employment


def list_candidate_employments(db: Session, candidate: Candidate) -> List[EmploymentRecord]:
    return (
        db.query(EmploymentRecord)
        .filter(EmploymentRecord.candidate_id == candidate.id)
        .order_by(EmploymentRecord.id.desc())
        .all()
    )


# Company side

def submit_company_verification(db: Session, company: Company, document_url: str) -> Company:
    submit(company, document_url, VerificationType.MANUAL.value)
    db.commit()
    db.refresh(company)
    logger.info("company_verification_submitted", company_id=company.id)
    return company


def _require_verified_company(company: Company):
    if not company.is_verified:
        raise AuthorizationError(
            "Your HR account must be verified before you can access verification requests"
        )


def list_company_requests(db: Session, company: Company, status: Optional[str] = None) -> List[EmploymentRecord]:
    _require_verified_company(company)
    query = db.query(EmploymentRecord).filter(EmploymentRecord.company_id == company.id)
    if status and status != "all":
        query = query.filter(EmploymentRecord.verification_status == status)
    return query.order_by(EmploymentRecord.id.desc()).all()


def _get_company_employment(db: Session, company: Company, employment_id: int) -> EmploymentRecord:
    """Employer decisions require the record's company foreign key to match"""
    _require_verified_company(company)
    employment = (
        db.query(EmploymentRecord)
        .filter(
            EmploymentRecord.id == employment_id,
            EmploymentRecord.company_id == company.id,
        )
        .first()
    )
    if not employment:
        raise NotFoundError("Employment record", str(employment_id))
    return employment


def company_approve_employment(
    db: Session, company: Company, employment_id: int, actor: User, notes: Optional[str] = None
) -> EmploymentRecord:
    employment = _get_company_employment(db, company, employment_id)
    approve(employment, actor.id, notes)
    db.commit()
    db.refresh(employment)
    logger.info("employment_verified", employment_id=employment.id, actor_id=actor.id, by="company")
    return employment


def company_reject_employment(
    db: Session, company: Company, employment_id: int, actor: User, reason: str
) -> EmploymentRecord:
    employment = _get_company_employment(db, company, employment_id)
    reject(employment, actor.id, reason)
    db.commit()
    db.refresh(employment)
    logger.info("employment_rejected", employment_id=employment.id, actor_id=actor.id, by="company")
    return employment


# Admin side

def admin_approve_employment(db: Session, employment_id: int, actor: User, notes: Optional[str] = None) -> EmploymentRecord:
    employment = _get_employment(db, employment_id)
    approve(employment, actor.id, notes)
    db.commit()
    db.refresh(employment)
    logger.info("employment_verified", employment_id=employment.id, actor_id=actor.id, by="admin")
    return employment


def admin_reject_employment(db: Session, employment_id: int, actor: User, reason: str) -> EmploymentRecord:
    employment = _get_employment(db, employment_id)
    reject(employment, actor.id, reason)
    db.commit()
    db.refresh(employment)
    logger.info("employment_rejected", employment_id=employment.id, actor_id=actor.id, by="admin")
    return employment


def list_employments_for_review(
    db: Session,
    status: Optional[str] = None,
    verification_type: Optional[str] = None,
) -> List[EmploymentRecord]:
    """Admin review queue across all companies"""
    query = db.query(EmploymentRecord)
    if status and status != "all":
        query = query.filter(EmploymentRecord.verification_status == status)
    if verification_type:
        query = query.filter(EmploymentRecord.verification_type == verification_type)
    return query.order_by(EmploymentRecord.id.desc()).all()


def list_companies_for_review(db: Session, status: Optional[str] = None) -> List[Company]:
    query = db.query(Company)
    if status and status != "all":
        query = query.filter(Company.verification_status == status)
    return query.order_by(Company.id.desc()).all()


def _get_company(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError("Company", str(company_id))
    return company


def admin_approve_company(db: Session, company_id: int, actor: User, notes: Optional[str] = None) -> Company:
    company = _get_company(db, company_id)
    approve(company, actor.id, notes)
    company.user.is_verified = True
    db.commit()
    db.refresh(company)
    logger.info("company_verified", company_id=company.id, actor_id=actor.id)
    return company


def admin_reject_company(db: Session, company_id: int, actor: User, reason: str) -> Company:
    company = _get_company(db, company_id)
    reject(company, actor.id, reason)
    db.commit()
    db.refresh(company)
    logger.info("company_rejected", company_id=company.id, actor_id=actor.id)
    return company
