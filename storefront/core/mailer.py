"""
Email adapter for the storefront backend.

The default implementation uses SMTP, reading credentials from Settings.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import html
import logging
import smtplib
import ssl

from .config import get_settings

logger = logging.getLogger(__name__)


class MailDeliveryError(Exception):
    """Raised when the SMTP transport rejects or fails to deliver a message."""


def send_email(subject: str, to_email: str, html_body: str, text_body: str | None = None) -> bool:
    """
    Send an email with the SMTP credentials configured through the environment.

    Returns False without sending when SMTP is not configured and raises
    MailDeliveryError when the transport fails.
    """
    settings = get_settings()
    if not (
        settings.smtp_host
        and settings.smtp_user
        and settings.smtp_password
        and settings.smtp_from
        and settings.smtp_port
    ):
        logger.warning("SMTP is not configured; skipping email %r", subject)
        return False
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = to_email
    plain = text_body or html_body
    msg.attach(MIMEText(plain, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    port = settings.smtp_port or 465
    try:
        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.smtp_host, port, context=context) as server:
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(settings.smtp_host, port) as server:
                server.ehlo()
                server.starttls(context=ssl.create_default_context())
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Failed to send %r: %s", subject, exc)
        raise MailDeliveryError(str(exc)) from exc
    return True


def reset_email_html(reset_url: str) -> str:
    safe_url = html.escape(reset_url, quote=True)
    return f"""
    <div style="border:1px solid black;padding:20px;font-family:sans-serif;line-height:2;font-size:20px;">
      <h2>Hello There!</h2>
      <p>Your password reset token is here!</p>
      <p><a href="{safe_url}">Click here to reset</a></p>
      <p>If you did not ask for this, you can ignore this message.</p>
    </div>
    """
