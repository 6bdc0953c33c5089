"""Development provider that writes emails to the log instead of sending them."""

from latchkey.core.logging import get_logger
from latchkey.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail

logger = get_logger(__name__)


class ConsoleEmailProvider(EmailProvider):
    name = "console"

    async def send(self, message: OutgoingEmail) -> bool:
        # Only the text body: it carries the same link as the HTML part
        logger.info(
            "Email not sent (console provider)",
            sender=message.sender,
            to=message.to,
            subject=message.subject,
            body=message.text_body,
        )
        return True
