"""
Email Service - SMTP

Bodies are rendered with jinja2 and autoescaping on, since names in the
greeting come straight from user profiles.
"""
import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional

from jinja2 import BaseLoader, Environment

from configs.auth_config import auth_config
from configs.email_config import email_config
from utils.logger import get_logger

logger = get_logger(__name__)

RESET_TEMPLATE = """
<div style="font-family: Georgia, serif; max-width: 560px; margin: 0 auto;">
  <h2>Password reset</h2>
  <p>Hello {{ name }},</p>
  <p>We received a request to reset the password for your account.
     The link below is valid for {{ minutes }} minutes.</p>
  <p><a href="{{ url }}" style="background:#111;color:#fff;padding:10px 18px;text-decoration:none;">Reset password</a></p>
  <p>If you did not request this, you can safely ignore this email.</p>
</div>
"""

RESET_CONFIRMATION_TEMPLATE = """
<div style="font-family: Georgia, serif; max-width: 560px; margin: 0 auto;">
  <h2>Your password was changed</h2>
  <p>Hello {{ name }},</p>
  <p>The password for your account has just been reset. If this was not you,
     please contact our client services immediately.</p>
</div>
"""

class EmailService:
    """Sends transactional emails through SMTP"""

    def __init__(self):
        self.jinja_env = Environment(loader=BaseLoader(), autoescape=True)

    def render(self, template: str, **context) -> str:
        return self.jinja_env.from_string(template).render(**context)

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = email_config.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This email requires an HTML capable client.")
        message.add_alternative(html, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage):
        smtp_cls = smtplib.SMTP_SSL if email_config.secure else smtplib.SMTP
        with smtp_cls(email_config.host, email_config.port, timeout=email_config.timeout) as smtp:
            if email_config.user and email_config.password:
                smtp.login(email_config.user, email_config.password)
            smtp.send_message(message)

    async def send_email(self, to: str, subject: str, html: str) -> bool:
        """Send an email; returns False when sending is disabled"""
        if not email_config.enabled:
            logger.info("Email sending disabled, skipping", to=to, subject=subject)
            return False

        message = self._build_message(to, subject, html)
        try:
            await asyncio.to_thread(self._send_sync, message)
            logger.info("Email sent", to=to, subject=subject)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email", error=str(e), to=to, subject=subject)
            raise

    def reset_url(self, token: str) -> str:
        return f"{auth_config.frontend_url.rstrip('/')}/reset-password/{token}"

    async def send_password_reset_email(self, to: str, token: str, name: Optional[str] = None) -> bool:
        html = self.render(
            RESET_TEMPLATE,
            name=name or "there",
            url=self.reset_url(token),
            minutes=auth_config.password_reset_expiration // 60000,
        )
        return await self.send_email(to, "Password reset request", html)

    async def send_password_reset_confirmation(self, to: str, name: Optional[str] = None) -> bool:
        html = self.render(RESET_CONFIRMATION_TEMPLATE, name=name or "there")
        return await self.send_email(to, "Your password has been reset", html)


email_service = EmailService()
