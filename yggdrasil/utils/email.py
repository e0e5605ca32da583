"""이메일 발송 유틸리티 — SMTP (aiosmtplib).

SMTP 설정은 config.py의 SMTP_* 환경 변수로 관리.
SMTP_FROM_EMAIL이 비어 있으면 발송하지 않고 로그만 남김.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from yggdrasil.config import settings

logger = logging.getLogger(__name__)


def is_configured() -> bool:
    """SMTP 발송 가능 여부 (Whether outgoing mail is configured)."""
    return bool(settings.SMTP_FROM_EMAIL and settings.SMTP_HOST)


async def send_email(
    to: str,
    subject: str,
    html: str,
    text: str | None = None,
) -> None:
    """이메일 발송.

    Args:
        to: 수신자 이메일 주소
        subject: 제목
        html: HTML 본문
        text: 플레인텍스트 본문 (선택)
    """
    if not is_configured():
        logger.info("SMTP not configured, skipping mail to %s (%s)", to, subject)
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = to

    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER or None,
        password=settings.SMTP_PASSWORD or None,
        start_tls=True,
    )


async def send_password_reset_email(to: str, name: str, token: str) -> None:
    """비밀번호 재설정 메일 (Password reset mail with the reset link)."""
    link: str = f"{settings.FRONTEND_URL}/reset-password?token={token}"
    html: str = (
        f"<p>Bonjour {name},</p>"
        f"<p>Pour réinitialiser votre mot de passe, cliquez sur le lien ci-dessous :</p>"
        f'<p><a href="{link}">{link}</a></p>'
        f"<p>Ce lien expire dans {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.</p>"
    )
    text: str = f"Reset your password: {link}"
    await send_email(to, "Yggdrasil - Password reset", html, text)
