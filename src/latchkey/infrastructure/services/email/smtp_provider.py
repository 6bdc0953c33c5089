"""SMTP delivery through aiosmtplib."""

from email.message import EmailMessage

import aiosmtplib
from pydantic import BaseModel, ConfigDict

from latchkey.core.config import Settings
from latchkey.core.exceptions import NotificationError
from latchkey.core.logging import get_logger
from latchkey.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    """Connection settings for an SMTP relay.

    ``use_ssl`` opens an implicit TLS connection (usually port 465).
    ``use_tls`` upgrades a plain connection with STARTTLS and is ignored when
    ``use_ssl`` is set.
    """

    model_config = ConfigDict(from_attributes=True)

    host: str
    port: int = 587
    username: str = ""
    password: str = ""
    use_tls: bool = True
    use_ssl: bool = False
    timeout: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPSettings":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            use_ssl=settings.smtp_use_ssl,
            timeout=settings.smtp_timeout,
        )


def to_mime(message: OutgoingEmail) -> EmailMessage:
    """Build a multipart/alternative message with text and HTML parts."""
    mime = EmailMessage()
    mime["Subject"] = message.subject
    mime["From"] = message.sender
    mime["To"] = message.to
    if message.reply_to:
        mime["Reply-To"] = message.reply_to
    mime.set_content(message.text_body)
    mime.add_alternative(message.html_body, subtype="html")
    return mime


class SMTPProvider(EmailProvider):
    name = "smtp"

    def __init__(self, settings: SMTPSettings) -> None:
        self.settings = settings

    async def send(self, message: OutgoingEmail) -> bool:
        """Open a connection, authenticate if configured and send.

        Raises:
            NotificationError: On connection, authentication or relay errors.
        """
        smtp = aiosmtplib.SMTP(
            hostname=self.settings.host,
            port=self.settings.port,
            use_tls=self.settings.use_ssl,
            start_tls=self.settings.use_tls and not self.settings.use_ssl,
            timeout=self.settings.timeout,
        )
        try:
            async with smtp:
                if self.settings.username:
                    await smtp.login(self.settings.username, self.settings.password)
                await smtp.send_message(to_mime(message))
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("SMTP delivery failed", host=self.settings.host, to=message.to, error=str(e))
            raise NotificationError(str(e), provider=self.name) from e
        return True
