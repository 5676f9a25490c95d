"""
Notification dispatcher: delivers one-time codes by email over SMTP.

Transports are tried in order (Postmark, the configured SMTP port, then
587/STARTTLS and 465/TLS) until one accepts the message. Delivery
failures are reported in the returned dict, never raised.
"""
from email.message import EmailMessage
from typing import Any, Dict, List

import aiosmtplib
import structlog

from veriboard.core.config import settings
from veriboard.notifications.templates import render_code_message

logger = structlog.get_logger()

POSTMARK_SMTP_HOST = "smtp.postmarkapp.com"

# Connection-level failures: move on to the next transport.
TRANSPORT_ERRORS = (
    aiosmtplib.SMTPConnectError,
    aiosmtplib.SMTPTimeoutError,
    aiosmtplib.SMTPServerDisconnected,
    aiosmtplib.SMTPAuthenticationError,
    OSError,
)


class OtpMailer:
    """Sends code emails through the first working SMTP transport"""

    def build_transports(self) -> List[Dict[str, Any]]:
        """Ordered, de-duplicated transport candidates, capped by MAIL_MAX_TRANSPORT_ATTEMPTS"""
        candidates = []
        if settings.POSTMARK_API_KEY:
            candidates.append({
                "hostname": POSTMARK_SMTP_HOST,
                "port": 587,
                "use_tls": False,
                "username": settings.POSTMARK_API_KEY,
                "password": settings.POSTMARK_API_KEY,
            })

        if settings.SMTP_HOST and settings.SMTP_USER:
            auth = {"username": settings.SMTP_USER, "password": settings.SMTP_PASSWORD}
            if settings.SMTP_PORT:
                secure = settings.SMTP_SECURE
                if secure is None:
                    secure = settings.SMTP_PORT == 465
                candidates.append({
                    "hostname": settings.SMTP_HOST,
                    "port": settings.SMTP_PORT,
                    "use_tls": secure,
                    **auth,
                })
            candidates.append({"hostname": settings.SMTP_HOST, "port": 587, "use_tls": False, **auth})
            candidates.append({"hostname": settings.SMTP_HOST, "port": 465, "use_tls": True, **auth})

        unique = []
        seen = set()
        for candidate in candidates:
            key = (candidate["hostname"], candidate["port"], candidate["use_tls"])
            if key not in seen:
                seen.add(key)
                unique.append(candidate)
        return unique[: settings.MAIL_MAX_TRANSPORT_ATTEMPTS]

    def build_message(self, to_email: str, code: str, purpose: str) -> EmailMessage:
        rendered = render_code_message(code, purpose, settings.OTP_EXPIRE_MINUTES)
        message = EmailMessage()
        message["From"] = settings.SMTP_FROM_EMAIL
        message["To"] = to_email
        message["Subject"] = rendered["subject"]
        message.set_content(rendered["text"])
        message.add_alternative(rendered["html"], subtype="html")
        return message

    async def send_code(self, to_email: str, code: str, purpose: str) -> Dict[str, Any]:
        """
        Deliver a code email.
        Returns {"delivered": bool, "skipped": bool, "transport": str|None,
        "attempts": int, "error": str|None}.
        """
        transports = self.build_transports()
        if not transports:
            logger.warning(
                "email_not_configured",
                to=to_email,
                purpose=purpose,
                hint="set SMTP_HOST/SMTP_USER/SMTP_PASSWORD or POSTMARK_API_KEY",
            )
            self._log_code_fallback(to_email, code, purpose)
            return {"delivered": False, "skipped": True, "transport": None, "attempts": 0, "error": None}

        message = self.build_message(to_email, code, purpose)
        last_error = None
        attempts = 0
        for transport in transports:
            attempts += 1
            label = f"{transport['hostname']}:{transport['port']}"
            try:
                await aiosmtplib.send(
                    message,
                    hostname=transport["hostname"],
                    port=transport["port"],
                    username=transport["username"],
                    password=transport["password"],
                    use_tls=transport["use_tls"],
                    start_tls=not transport["use_tls"],
                    timeout=settings.SMTP_TIMEOUT,
                )
            except TRANSPORT_ERRORS as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning("smtp_transport_failed", transport=label, error=last_error)
                continue
            except aiosmtplib.SMTPException as e:
                # Server accepted the connection but refused the message
                last_error = f"{type(e).__name__}: {e}"
                logger.error("smtp_send_rejected", transport=label, to=to_email, error=last_error)
                break

            logger.info("otp_email_sent", to=to_email, purpose=purpose, transport=label)
            return {"delivered": True, "skipped": False, "transport": label, "attempts": attempts, "error": None}

        logger.error("otp_email_undelivered", to=to_email, purpose=purpose, attempts=attempts, error=last_error)
        self._log_code_fallback(to_email, code, purpose)
        return {"delivered": False, "skipped": False, "transport": None, "attempts": attempts, "error": last_error}

    def _log_code_fallback(self, to_email: str, code: str, purpose: str):
        if settings.LOG_OTP_CODES:
            logger.warning("otp_code_fallback", to=to_email, purpose=purpose, code=code)


mailer = OtpMailer()


async def dispatch_code(to_email: str, code: str, purpose: str):
    """Background entry point; the result only surfaces in the log stream"""
    try:
        result = await mailer.send_code(to_email, code, purpose)
    except Exception as e:
        logger.exception("otp_email_failed", to=to_email, purpose=purpose, error=str(e))
        return
    logger.info(
        "otp_email_dispatched",
        to=to_email,
        purpose=purpose,
        delivered=result["delivered"],
        skipped=result["skipped"],
        error=result["error"],
    )
