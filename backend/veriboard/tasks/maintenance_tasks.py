"""
Periodic housekeeping tasks
"""
from celery import Task
from sqlalchemy.orm import Session
from veriboard.core.celery_app import celery_app
from veriboard.core.database import SessionLocal
from veriboard.otp.service import purge_expired_codes
import structlog

logger = structlog.get_logger()


@celery_app.task(bind=True, max_retries=3)
def purge_expired_codes_task(self: Task) -> int:
    """Delete one-time codes past their expiry"""
    db: Session = SessionLocal()
    try:
        removed = purge_expired_codes(db)
        logger.info("expired_otp_codes_purged", removed=removed)
        return removed
    except Exception as e:
        logger.exception("otp_purge_failed", error=str(e))
        db.rollback()
        raise self.retry(exc=e, countdown=60)
    finally:
        db.close()
