"""
Email Notification Service - templated and plain messages over SMTP.

Two kinds of message:
- Templated: a Handlebars template from app/templates/email rendered with a
  model and sent as HTML (user-facing confirmations).
- Plain: a subject and a text body (internal operations mail).

Gmail Setup:
1. Enable 2-Step Verification in your Google Account
2. Generate an App Password at https://myaccount.google.com/apppasswords
3. Set environment variables:
   - GMAIL_NOTIFICATIONS_ENABLED: true
   - GMAIL_USER: your-email@gmail.com
   - GMAIL_APP_PASSWORD: your-16-character-app-password
   - NOTIFICATION_FROM_EMAIL: address shown as the sender
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional, Union

from app.config import settings
from app.services.email_templates import render_email
from app.services.onboarding_exceptions import NotificationError

logger = logging.getLogger(__name__)


class NotificationManager:
    """
    Sends email through an SMTP server using an App Password.

    A disabled or unconfigured manager logs and returns False; a transport
    failure raises NotificationError so callers decide whether it matters.
    """

    def __init__(
        self,
        enabled: Optional[bool] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        gmail_user: Optional[str] = None,
        gmail_app_password: Optional[str] = None,
        from_email: Optional[str] = None,
    ):
        self.enabled = enabled if enabled is not None else settings.GMAIL_NOTIFICATIONS_ENABLED
        self.smtp_host = smtp_host or settings.SMTP_HOST
        self.smtp_port = smtp_port or settings.SMTP_PORT
        self.gmail_user = gmail_user or settings.GMAIL_USER
        self.gmail_app_password = gmail_app_password or settings.GMAIL_APP_PASSWORD
        self.from_email = from_email or settings.NOTIFICATION_FROM_EMAIL

    @staticmethod
    def _recipients(to: Union[str, List[str]]) -> List[str]:
        if isinstance(to, str):
            return [r.strip() for r in to.split(",") if r.strip()]
        return [r for r in to if r]

    def send_templated(
        self,
        to: Union[str, List[str]],
        template_id: str,
        model: Dict[str, Any],
        subject: str = "",
    ) -> bool:
        """Render ``template_id`` with ``model`` and send it as HTML."""
        html_body = render_email(template_id, model, subject=subject)
        return self._send(to, subject or settings.PRODUCT_NAME, body="", html_body=html_body)

    def send_plain(self, to: Union[str, List[str]], subject: str, body: str) -> bool:
        """Send a plain-text message."""
        return self._send(to, subject, body=body)

    def _send(
        self,
        to: Union[str, List[str]],
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        if not self.enabled or not self.gmail_user or not self.gmail_app_password:
            logger.debug("Email notifications not configured or disabled")
            return False

        recipients = self._recipients(to)
        if not recipients:
            logger.debug("No email recipients specified")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = ", ".join(recipients)

        if body:
            msg.attach(MIMEText(body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.ehlo()
                server.starttls()
                server.ehlo()
                server.login(self.gmail_user, self.gmail_app_password)
                server.sendmail(self.from_email, recipients, msg.as_string())
        except smtplib.SMTPAuthenticationError as e:
            logger.error(
                f"SMTP authentication failed. Make sure you're using an App Password, "
                f"not your regular Google password. Error: {e}"
            )
            raise NotificationError(f"SMTP authentication failed: {e}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send email '{subject}': {e}") from e

        logger.info(f"Email sent to {len(recipients)} recipients: {subject}")
        return True


# =============================================================================
# Singleton Instance
# =============================================================================

_manager: Optional[NotificationManager] = None


def get_notification_manager() -> NotificationManager:
    """Get or create the global notification manager."""
    global _manager
    if _manager is None:
        _manager = NotificationManager()
    return _manager
