"""
Application configuration using Pydantic Settings
"""
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # Application
    APP_NAME: str = "VeriBoard API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    
    # Session tokens
    JWT_SECRET: str = Field(default="change-this-in-production-min-32-characters-required", min_length=32)
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: str = "7d"
    BCRYPT_ROUNDS: int = 12
    
    # Database
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    
    # Redis (rate limiting)
    REDIS_URL: str = "redis://localhost:6379/0"
    
    # Async Tasks
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    
    # One-time codes
    ENABLE_OTP_ON_LOGIN: bool = False
    REQUIRE_OTP_ON_REGISTER: bool = True
    OTP_LENGTH: int = 6
    OTP_EXPIRE_MINUTES: int = 10
    OTP_REQUESTS_PER_MINUTE: int = 3
    OTP_MAX_VERIFY_ATTEMPTS: int = 5
    OTP_PURGE_INTERVAL_MINUTES: int = 60
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 15
    # Development fallback: write issued codes to the log
    LOG_OTP_CODES: bool = False
    
    # Email
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: Optional[int] = None
    SMTP_SECURE: Optional[bool] = None
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_TIMEOUT: float = 10.0
    SMTP_FROM_EMAIL: str = "noreply@veriboard.com"
    POSTMARK_API_KEY: Optional[str] = None
    MAIL_MAX_TRANSPORT_ATTEMPTS: int = 3
    
    # Requests
    MAX_REQUEST_BODY_BYTES: int = 5 * 1024 * 1024
    
    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]
    CORS_ALLOW_CREDENTIALS: bool = True
    
    # Observability
    LOG_LEVEL: str = "INFO"
    
    # Bootstrap admin (scripts/init_db.py)
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None
    
    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        return list(self.CORS_ORIGINS)


settings = Settings()
