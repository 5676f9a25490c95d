"""
Email templates for one-time codes
"""
from html import escape
from typing import Dict

from veriboard.models.otp import OtpPurpose

TEMPLATES = {
    OtpPurpose.REGISTER.value: {
        "subject": "Your VeriBoard signup code",
        "headline": "Confirm your email address",
        "action": "finish creating your VeriBoard account",
    },
    OtpPurpose.LOGIN_2FA.value: {
        "subject": "Your VeriBoard login code",
        "headline": "Confirm it's you",
        "action": "sign in to VeriBoard",
    },
    OtpPurpose.RESET_PASSWORD.value: {
        "subject": "Your VeriBoard password reset code",
        "headline": "Reset your password",
        "action": "reset your VeriBoard password",
    },
}


def render_code_message(code: str, purpose: str, expire_minutes: int) -> Dict[str, str]:
    """Subject, plaintext and HTML bodies for a code email"""
    template = TEMPLATES[OtpPurpose(purpose).value]
    text = (
        f"{template['headline']}\n\n"
        f"Use this code to {template['action']}: {code}\n\n"
        f"This code will expire in {expire_minutes} minutes. "
        "If you did not request it, you can ignore this email."
    )
    html = (
        f"<p>{escape(template['headline'])}</p>"
        f"<p>Use this code to {escape(template['action'])}:</p>"
        f"<h2>{escape(code)}</h2>"
        f"<p>This code will expire in {expire_minutes} minutes. "
        "If you did not request it, you can ignore this email.</p>"
    )
    return {"subject": template["subject"], "text": text, "html": html}
