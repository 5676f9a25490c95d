"""
Authentication routes: registration, login, two-factor codes, password reset
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.orm import Session
from jose import JWTError
import structlog

from veriboard.core.config import settings
from veriboard.core.database import get_db
from veriboard.core.exceptions import (
    AccountExists,
    InvalidCredentials,
    InvalidOrExpiredCode,
    ValidationError,
)
from veriboard.auth.dependencies import get_current_user
from veriboard.auth.service import (
    access_token_lifetime,
    authenticate_user,
    create_access_token,
    create_account,
    create_registration_token,
    create_reset_token,
    decode_token,
    get_password_hash,
    get_user_by_email,
    get_user_by_id,
    password_fingerprint,
    set_password,
    update_user_last_login,
)
from veriboard.auth.schemas import (
    AccountResponse,
    AuthTokenResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    ResetTokenResponse,
    VerifyCodeRequest,
    VerifyEmailRequest,
)
from veriboard.models.otp import OtpPurpose
from veriboard.models.user import User
from veriboard.notifications.mailer import dispatch_code
from veriboard.otp.service import (
    enforce_issue_rate,
    normalize_email,
    request_code,
    verify_code,
)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])
logger = structlog.get_logger()

RESET_REQUESTED_MESSAGE = "If an account exists, a reset code has been sent to your email"


def account_response(user: User) -> AccountResponse:
    return AccountResponse(
        id=user.id,
        email=user.email,
        name=user.display_name,
        account_type=user.account_type,
        is_verified=user.is_verified,
    )


def token_response(user: User, message: str = None) -> AuthTokenResponse:
    return AuthTokenResponse(
        message=message,
        token=create_access_token(user),
        expires_in=int(access_token_lifetime().total_seconds()),
        user=account_response(user),
    )


@router.post("/register", response_model=RegisterResponse)
def register(
    data: RegisterRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Start registration; the account is created once the emailed code is verified"""
    email = normalize_email(data.email)
    if get_user_by_email(db, email):
        raise AccountExists()
    
    hashed_password = get_password_hash(data.password)
    
    if not settings.REQUIRE_OTP_ON_REGISTER:
        user = create_account(
            db,
            email=email,
            hashed_password=hashed_password,
            name=data.name,
            account_type=data.account_type,
            company_name=data.company_name,
        )
        response.status_code = status.HTTP_201_CREATED
        session = token_response(user)
        return RegisterResponse(
            message="Account created successfully",
            requires_verification=False,
            email=email,
            token=session.token,
            expires_in=session.expires_in,
            user=session.user,
        )
    
    code = request_code(db, email, OtpPurpose.REGISTER)
    background_tasks.add_task(dispatch_code, email, code, OtpPurpose.REGISTER.value)
    
    logger.info("registration_started", email=email, account_type=data.account_type)
    return RegisterResponse(
        message="Please check your email for verification code.",
        requires_verification=True,
        email=email,
        registration_token=create_registration_token(
            email=email,
            name=data.name,
            hashed_password=hashed_password,
            account_type=data.account_type,
            company_name=data.company_name,
        ),
    )


@router.post("/verify-email", response_model=AuthTokenResponse, status_code=status.HTTP_201_CREATED)
def verify_email(
    data: VerifyEmailRequest,
    db: Session = Depends(get_db),
):
    """Consume the registration code and create the account"""
    try:
        pending = decode_token(data.registration_token, "registration")
    except JWTError:
        raise ValidationError("Registration data is invalid or expired")
    
    email = normalize_email(data.email)
    if pending.get("sub") != email:
        raise ValidationError("Registration data does not match this email")
    
    # The code stays consumed even if account creation fails below.
    verify_code(db, email, data.code, OtpPurpose.REGISTER)
    
    user = create_account(
        db,
        email=email,
        hashed_password=pending["hashed_password"],
        name=pending["name"],
        account_type=pending["account_type"],
        company_name=pending.get("company_name"),
        is_verified=True,
    )
    return token_response(user, "Email verified and account created successfully!")


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Check credentials; issue a token, or a login code when two-factor is on"""
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user or not user.is_active:
        logger.warning("failed_login_attempt", email=normalize_email(credentials.email))
        raise InvalidCredentials()
    
    if settings.ENABLE_OTP_ON_LOGIN:
        code = request_code(db, user.email, OtpPurpose.LOGIN_2FA)
        background_tasks.add_task(dispatch_code, user.email, code, OtpPurpose.LOGIN_2FA.value)
        return LoginResponse(otp_required=True, message="OTP sent to email")
    
    update_user_last_login(db, user)
    logger.info("user_logged_in", user_id=user.id)
    session = token_response(user)
    return LoginResponse(
        token=session.token,
        token_type=session.token_type,
        expires_in=session.expires_in,
        user=session.user,
    )


@router.post("/verify-login-otp", response_model=AuthTokenResponse)
def verify_login_otp(
    data: VerifyCodeRequest,
    db: Session = Depends(get_db),
):
    """Second login step when two-factor codes are enabled"""
    verify_code(db, data.email, data.code, OtpPurpose.LOGIN_2FA)
    
    user = get_user_by_email(db, data.email)
    if not user or not user.is_active:
        raise InvalidCredentials()
    
    update_user_last_login(db, user)
    logger.info("user_logged_in", user_id=user.id, two_factor=True)
    return token_response(user)


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Issue a reset code. The response never reveals whether the account exists."""
    email = normalize_email(data.email)
    enforce_issue_rate(email, OtpPurpose.RESET_PASSWORD)
    
    user = get_user_by_email(db, email)
    if user:
        code = request_code(db, email, OtpPurpose.RESET_PASSWORD, check_rate=False)
        background_tasks.add_task(dispatch_code, email, code, OtpPurpose.RESET_PASSWORD.value)
    else:
        logger.info("password_reset_unknown_email", email=email)
    
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/verify-reset-code", response_model=ResetTokenResponse)
def verify_reset_code(
    data: VerifyCodeRequest,
    db: Session = Depends(get_db),
):
    """Consume a reset code in exchange for a short-lived reset token"""
    verify_code(db, data.email, data.code, OtpPurpose.RESET_PASSWORD)
    
    user = get_user_by_email(db, data.email)
    if not user:
        raise InvalidOrExpiredCode()
    
    return ResetTokenResponse(
        reset_token=create_reset_token(user),
        expires_in=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    data: ResetPasswordRequest,
    db: Session = Depends(get_db),
):
    """Set a new password with a reset token, or with email + code in one call"""
    if data.reset_token:
        try:
            payload = decode_token(data.reset_token, "password_reset")
            user = get_user_by_id(db, int(payload["sub"]))
        except (JWTError, KeyError, ValueError):
            raise InvalidOrExpiredCode("Invalid or expired reset token")
        if not user or payload.get("pwd") != password_fingerprint(user):
            raise InvalidOrExpiredCode("Invalid or expired reset token")
    else:
        verify_code(db, data.email, data.code, OtpPurpose.RESET_PASSWORD)
        user = get_user_by_email(db, data.email)
        if not user:
            raise InvalidOrExpiredCode()
    
    set_password(db, user, data.new_password)
    return MessageResponse(message="Password reset successfully")


@router.get("/me", response_model=AccountResponse)
def get_current_user_info(
    current_user: User = Depends(get_current_user),
):
    """Get current user information"""
    return account_response(current_user)


@router.post("/logout", response_model=MessageResponse)
def logout():
    """Tokens are stateless; clients discard them"""
    return MessageResponse(message="Logged out")
