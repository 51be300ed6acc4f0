"""Service for sending password reset emails."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        base_url: str,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "CodeShare",
    ):
        self.base_url = base_url.rstrip("/")
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username or ""
        self.smtp_password = smtp_password or ""
        self.from_email = from_email or ""
        self.from_name = from_name
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def reset_url(self, token: str) -> str:
        return f"{self.base_url}/reset-password?token={token}"

    def send_password_reset_email(self, to_email: str, token: str) -> bool:
        """
        Send the password reset link.

        Args:
            to_email: Recipient email
            token: Reset token

        Returns:
            True if sent (or logged when SMTP is not configured), False otherwise
        """
        reset_url = self.reset_url(token)
        if not self.enabled:
            logger.info("Password reset URL for %s: %s", to_email, reset_url)
            return True

        subject = "Reset your CodeShare password"
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1e293b;">Reset your password</h2>
                <p style="color: #475569; line-height: 1.6;">
                    Someone asked to reset the password of your CodeShare account.
                    Use the link below to choose a new one. It expires in 24 hours.
                </p>
                <p><a href="{reset_url}">Reset password</a></p>
                <p style="color: #64748b; font-size: 14px;">
                    If you did not ask for this, you can ignore this email.
                </p>
            </body>
        </html>
        """
        text_body = f"""
        Reset your CodeShare password

        Open the link below to choose a new password:
        {reset_url}

        The link expires in 24 hours. If you did not ask for this, ignore this email.
        """
        return self._send_email(to_email, subject, html_body, text_body)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s", to_email)
            return False
        return True
