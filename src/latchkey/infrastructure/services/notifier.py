"""Email notifier for verification and password reset links.

Renders the link email for a freshly issued token and hands it to the
configured provider. Delivery failures are logged and reported through the
return value; they never undo the token issuance, which stays valid for its
full TTL whether or not the email arrived.
"""

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from latchkey.core.config import Settings, get_settings
from latchkey.core.exceptions import NotificationError
from latchkey.core.logging import get_logger
from latchkey.domain.entities.token import OpaqueToken
from latchkey.infrastructure.services.email import (
    EmailProvider,
    OutgoingEmail,
    TemplateRenderer,
    build_email_provider,
    get_template_renderer,
)

logger = get_logger(__name__)


class NotificationTemplate(str, Enum):
    EMAIL_VERIFICATION = "emailVerification"
    PASSWORD_RESET = "passwordReset"


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html_body: str
    text_body: str
    path: str


DEFAULT_TEMPLATES: dict[NotificationTemplate, EmailTemplate] = {
    NotificationTemplate.EMAIL_VERIFICATION: EmailTemplate(
        subject="Confirm your email for {{ app_name }}",
        html_body=(
            "<p>Hello,</p>"
            "<p>Please confirm your email address by following "
            '<a href="{{ link }}">this link</a>.</p>'
            "<p>The link is valid for {{ ttl_hours }} hours.</p>"
        ),
        text_body=(
            "Hello,\n\n"
            "Please confirm your email address by opening this link:\n"
            "{{ link }}\n\n"
            "The link is valid for {{ ttl_hours }} hours.\n"
        ),
        path="/auth/email_check",
    ),
    NotificationTemplate.PASSWORD_RESET: EmailTemplate(
        subject="Reset your {{ app_name }} password",
        html_body=(
            "<p>Hello,</p>"
            "<p>You asked to change your password. "
            '<a href="{{ link }}">Choose a new password</a>.</p>'
            "<p>The link is valid for {{ ttl_hours }} hours. "
            "If you did not ask for this, you can ignore this email.</p>"
        ),
        text_body=(
            "Hello,\n\n"
            "You asked to change your password. Open this link to choose a new one:\n"
            "{{ link }}\n\n"
            "The link is valid for {{ ttl_hours }} hours. "
            "If you did not ask for this, you can ignore this email.\n"
        ),
        path="/auth/reset_password",
    ),
}


class EmailNotifier:
    """Sends token links by email."""

    def __init__(
        self,
        provider: EmailProvider,
        renderer: TemplateRenderer | None = None,
        settings: Settings | None = None,
        templates: dict[NotificationTemplate, EmailTemplate] | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            provider: Email provider used for delivery.
            renderer: Template renderer (defaults to the shared sandboxed renderer).
            settings: Settings providing app URL, sender and TTLs.
            templates: Template overrides keyed by notification template.
        """
        self.provider = provider
        self.renderer = renderer or get_template_renderer()
        self.settings = settings or get_settings()
        self.templates = templates or DEFAULT_TEMPLATES

    def build_link(self, template: NotificationTemplate, token: OpaqueToken, email: str) -> str:
        query = urlencode({"email": email, "token": token.value})
        return f"{self.settings.app_url.rstrip('/')}{self.templates[template].path}?{query}"

    def _ttl_hours(self, template: NotificationTemplate) -> int:
        if template is NotificationTemplate.PASSWORD_RESET:
            return self.settings.password_change_ttl_hours
        return self.settings.email_check_ttl_hours

    async def send(
        self,
        template: NotificationTemplate,
        to: str,
        token: OpaqueToken,
        email: str,
    ) -> bool:
        """Render and send a token email.

        Args:
            template: Which email to send.
            to: Recipient address.
            token: The raw token to embed in the link.
            email: The identity the link is bound to.

        Returns:
            True if the provider accepted the message, False otherwise.
        """
        spec = self.templates[template]
        variables = {
            "app_name": self.settings.app_name,
            "link": self.build_link(template, token, email),
            "email": email,
            "ttl_hours": str(self._ttl_hours(template)),
        }

        message = OutgoingEmail(
            to=to,
            subject=self.renderer.render(spec.subject, variables, html=False),
            html_body=self.renderer.render(spec.html_body, variables),
            text_body=self.renderer.render(spec.text_body, variables, html=False),
            from_email=self.settings.mail_from_email,
            from_name=self.settings.mail_from_name,
        )

        try:
            sent = await self.provider.send(message)
        except NotificationError as e:
            logger.error(
                "Failed to send notification",
                template=template.value,
                to=to,
                provider=e.provider,
                error=str(e),
            )
            return False

        if sent:
            logger.info("Notification sent", template=template.value, to=to)
        else:
            logger.warning("Notification not accepted by provider", template=template.value, to=to)
        return sent


def build_notifier(settings: Settings | None = None) -> EmailNotifier:
    """Build a notifier using the provider selected in settings."""
    settings = settings or get_settings()
    return EmailNotifier(provider=build_email_provider(settings), settings=settings)
