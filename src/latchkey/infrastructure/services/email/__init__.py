"""Email providers and template rendering."""

from latchkey.core.config import Settings
from latchkey.infrastructure.services.email.console_provider import ConsoleEmailProvider
from latchkey.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail
from latchkey.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from latchkey.infrastructure.services.email.template_renderer import (
    TemplateRenderer,
    get_template_renderer,
)


def build_email_provider(settings: Settings) -> EmailProvider:
    """Select the email provider configured in settings."""
    if settings.email_provider == "smtp":
        return SMTPProvider(SMTPSettings.from_settings(settings))
    return ConsoleEmailProvider()


__all__ = [
    "ConsoleEmailProvider",
    "EmailProvider",
    "OutgoingEmail",
    "SMTPProvider",
    "SMTPSettings",
    "TemplateRenderer",
    "build_email_provider",
    "get_template_renderer",
]
