"""
Initialize database tables and a bootstrap admin account
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.orm import Session
from veriboard.core.config import settings
from veriboard.core.database import SessionLocal, init_db
from veriboard.models.user import User, AccountType
from veriboard.auth.service import get_password_hash
from veriboard.otp.service import normalize_email
import structlog

logger = structlog.get_logger()


def create_admin_user(db: Session):
    """Create the admin account named by ADMIN_EMAIL / ADMIN_PASSWORD"""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.info("admin_bootstrap_skipped", reason="ADMIN_EMAIL/ADMIN_PASSWORD not set")
        return
    
    admin_email = normalize_email(settings.ADMIN_EMAIL)
    existing = db.query(User).filter(User.email == admin_email).first()
    if existing:
        logger.info("admin_user_exists", email=admin_email)
        return
    
    admin_user = User(
        email=admin_email,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        name="Administrator",
        account_type=AccountType.ADMIN.value,
        is_active=True,
        is_verified=True,
    )
    db.add(admin_user)
    db.commit()
    
    logger.info("admin_user_created", email=admin_email)


def main():
    """Main initialization function"""
    logger.info("initializing_database")
    
    # Initialize database tables
    init_db()
    
    db: Session = SessionLocal()
    try:
        create_admin_user(db)
        logger.info("database_initialization_complete")
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
