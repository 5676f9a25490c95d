"""
Authentication Pydantic schemas
"""
from typing import Optional, Literal
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


class AccountResponse(BaseModel):
    """Public view of an account"""
    id: int
    email: str
    name: str
    account_type: str
    is_verified: bool


class AuthTokenResponse(BaseModel):
    """Session token response schema"""
    success: bool = True
    message: Optional[str] = None
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: AccountResponse


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class RegisterRequest(BaseModel):
    """Registration request schema"""
    name: str
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    account_type: Literal["candidate", "company"]
    company_name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class RegisterResponse(BaseModel):
    """
    Either a pending registration (requires_verification, registration_token)
    or, when email codes are disabled, a created account with a session token
    """
    success: bool = True
    message: str
    requires_verification: bool
    email: str
    registration_token: Optional[str] = None
    token: Optional[str] = None
    expires_in: Optional[int] = None
    user: Optional[AccountResponse] = None


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)
    registration_token: str


class LoginRequest(BaseModel):
    """Login request schema"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    success: bool = True
    otp_required: bool = Field(default=False, serialization_alias="otpRequired")
    message: Optional[str] = None
    token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    user: Optional[AccountResponse] = None


class VerifyCodeRequest(BaseModel):
    """Email + one-time code"""
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetTokenResponse(BaseModel):
    success: bool = True
    reset_token: str
    expires_in: int


class ResetPasswordRequest(BaseModel):
    """Either a reset_token from verify-reset-code, or email + code in one call"""
    new_password: str = Field(..., min_length=8, max_length=128)
    reset_token: Optional[str] = None
    email: Optional[EmailStr] = None
    code: Optional[str] = Field(default=None, max_length=12)

    @model_validator(mode="after")
    def token_or_code(self):
        if not self.reset_token and not (self.email and self.code):
            raise ValueError("Provide reset_token, or email and code")
        return self
