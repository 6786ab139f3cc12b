import logging
import smtplib
from email.mime.text import MIMEText

from .config import settings


logger = logging.getLogger(__name__)


class CredentialDispatchError(Exception):
    pass


def _send_mail(*, recipient_email: str, subject: str, body: str) -> None:
    if not settings.smtp_username or not settings.smtp_password:
        raise CredentialDispatchError("SMTP credentials are missing")

    msg = MIMEText(body)
    msg["Subject"] = subject
    msg["From"] = settings.smtp_username
    msg["To"] = recipient_email

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as server:
            server.starttls()
            server.login(settings.smtp_username, settings.smtp_password)
            server.sendmail(settings.smtp_username, [recipient_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        raise CredentialDispatchError(f"Failed to send credentials email: {exc}") from exc


def notify_parent_credentials(*, recipient_email: str, student_name: str, password: str) -> bool:
    """Deliver a provisioned parent's one-time password.

    Returns True when the email went out. With the console fallback enabled a
    failed dispatch logs the credentials once instead; otherwise the failure
    is raised. The password is not kept anywhere after this call.
    """
    body = (
        f"A parent account has been created for you so you can follow {student_name}'s tuition.\n\n"
        f"Login email: {recipient_email}\n"
        f"Temporary password: {password}\n"
    )
    try:
        _send_mail(recipient_email=recipient_email, subject="Your tuition parent account", body=body)
        logger.info(f"Parent credentials emailed to {recipient_email}")
        return True
    except CredentialDispatchError as exc:
        if not settings.allow_console_fallback:
            raise
        logger.warning(
            f"Credentials email to {recipient_email} failed ({exc}). "
            f"Using terminal fallback temporary password: {password}"
        )
        return False
