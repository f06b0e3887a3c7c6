"""
Notification delivery for viewing events.
Sends templated email over SMTP, or logs the message when SMTP is not configured.
"""

import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from backend.core import config
from backend.services import email_templates
from backend.services.calendar_invite import Attachment

logger = logging.getLogger(__name__)


class NotificationService(ABC):
    """Sends one templated message to one address."""

    @abstractmethod
    def send(self, to_email: str, template: str, data: dict, attachments: Optional[list[Attachment]] = None) -> None:
        ...


class LoggingNotificationService(NotificationService):
    def send(self, to_email: str, template: str, data: dict, attachments: Optional[list[Attachment]] = None) -> None:
        subject, _ = email_templates.render(template, data)
        logger.info(
            "SMTP not configured; would send %s email '%s' to %s with %d attachment(s)",
            template,
            subject,
            to_email,
            len(attachments or []),
        )


class SmtpNotificationService(NotificationService):
    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_ssl: bool = False,
        from_address: str = config.EMAIL_FROM_ADDRESS,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.from_address = from_address

    def build_message(
        self, to_email: str, template: str, data: dict, attachments: Optional[list[Attachment]] = None
    ) -> MIMEMultipart:
        subject, html_content = email_templates.render(template, data)

        msg = MIMEMultipart()
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        for attachment in attachments or []:
            maintype, _, subtype = attachment.mime_type.partition("/")
            part = MIMEBase(maintype, subtype or "octet-stream")
            part.set_payload(attachment.content)
            encoders.encode_base64(part)
            part.add_header("Content-Disposition", f'attachment; filename="{attachment.filename}"')
            msg.attach(part)

        return msg

    def send(self, to_email: str, template: str, data: dict, attachments: Optional[list[Attachment]] = None) -> None:
        msg = self.build_message(to_email, template, data, attachments)

        context = ssl.create_default_context()
        if self.use_ssl:
            server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=30)

        try:
            if not self.use_ssl:
                server.starttls(context=context)
            if self.username:
                server.login(self.username, self.password)
            server.sendmail(self.from_address, [to_email], msg.as_string())
        finally:
            server.quit()

        logger.info("Sent %s email to %s", template, to_email)


def get_notifier() -> NotificationService:
    if not config.SMTP_HOST:
        return LoggingNotificationService()
    return SmtpNotificationService(
        host=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USERNAME,
        password=config.SMTP_PASSWORD,
        use_ssl=config.SMTP_USE_SSL,
    )
