"""Outgoing mail for confirmation and password recovery codes."""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import structlog

logger = structlog.get_logger(__name__)


def confirmation_email_body(link: str) -> str:
    return f"""
    <h1>Thank you for your registration</h1>
    <p>To finish registration please follow the link below:</p>
    <p><a href="{link}">complete registration</a></p>
    """


def recovery_email_body(link: str) -> str:
    return f"""
    <h1>Password recovery</h1>
    <p>To finish password recovery please follow the link below:</p>
    <p><a href="{link}">recovery password</a></p>
    """


class EmailService:
    """SMTP notification gateway.

    smtplib is blocking, so every send runs in a worker thread. Transport failures are
    logged and re-raised; the caller decides how to report them.
    """

    def __init__(
        self,
        frontend_url: str,
        smtp_host: str,
        smtp_port: int,
        email_from: str,
        smtp_username: str = "",
        smtp_password: str = "",
        smtp_use_tls: bool = True,
    ) -> None:
        self._frontend_url = frontend_url.rstrip("/")
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._email_from = email_from
        self._smtp_username = smtp_username
        self._smtp_password = smtp_password
        self._smtp_use_tls = smtp_use_tls

    async def send_confirmation_email(self, email: str, code: str) -> None:
        link = f"{self._frontend_url}/confirm-email?code={code}"
        await self._send(email, "Email confirmation", confirmation_email_body(link))

    async def send_password_recovery_email(self, email: str, code: str) -> None:
        link = f"{self._frontend_url}/password-recovery?recoveryCode={code}"
        await self._send(email, "Password recovery", recovery_email_body(link))

    async def _send(self, to_email: str, subject: str, body_html: str) -> None:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self._email_from
        message["To"] = to_email
        message.attach(MIMEText(body_html, "html"))

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError):
            logger.exception("email_send_failed", subject=subject)
            raise
        logger.debug("email_sent", subject=subject)

    def _deliver(self, message: MIMEMultipart) -> None:
        with smtplib.SMTP(self._smtp_host, self._smtp_port) as server:
            if self._smtp_use_tls:
                server.starttls()
            if self._smtp_username and self._smtp_password:
                server.login(self._smtp_username, self._smtp_password)
            server.send_message(message)
