"""
Database models
"""
from veriboard.models.user import User, AccountType
from veriboard.models.candidate import Candidate
from veriboard.models.company import Company
from veriboard.models.employment import EmploymentRecord
from veriboard.models.otp import OneTimeCode, OtpPurpose

__all__ = [
    "User",
    "AccountType",
    "Candidate",
    "Company",
    "EmploymentRecord",
    "OneTimeCode",
    "OtpPurpose",
]
