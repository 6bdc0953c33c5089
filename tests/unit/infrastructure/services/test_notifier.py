"""Unit tests for EmailNotifier."""

from urllib.parse import parse_qs, urlparse

import pytest

from latchkey.core.exceptions import NotificationError
from latchkey.domain.entities.token import OpaqueToken
from latchkey.infrastructure.services.email import ConsoleEmailProvider, OutgoingEmail, SMTPProvider
from latchkey.infrastructure.services.notifier import (
    EmailNotifier,
    NotificationTemplate,
    build_notifier,
)
from tests.factories import sent_message


def test_link_carries_email_and_token(notifier):
    link = notifier.build_link(
        NotificationTemplate.PASSWORD_RESET, OpaqueToken("tok_123"), "a+b@example.com"
    )

    parsed = urlparse(link)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "http://test/auth/reset_password"
    assert parse_qs(parsed.query) == {"email": ["a+b@example.com"], "token": ["tok_123"]}


@pytest.mark.asyncio
async def test_verification_email(notifier, email_provider, settings):
    sent = await notifier.send(
        NotificationTemplate.EMAIL_VERIFICATION,
        "ada@example.com",
        OpaqueToken("tok_abc"),
        "ada@example.com",
    )

    assert sent is True
    message = sent_message(email_provider)
    assert message.to == "ada@example.com"
    assert message.from_email == settings.mail_from_email
    assert "Confirm your email" in message.subject
    assert "http://test/auth/email_check?email=ada%40example.com&token=tok_abc" in message.text_body
    assert "24 hours" in message.text_body
    assert 'href="http://test/auth/email_check?' in message.html_body


@pytest.mark.asyncio
async def test_reset_email_uses_reset_ttl(email_provider, settings):
    settings = settings.model_copy(update={"password_change_ttl_hours": 2})
    notifier = EmailNotifier(provider=email_provider, settings=settings)

    await notifier.send(
        NotificationTemplate.PASSWORD_RESET, "ada@example.com", OpaqueToken("t"), "ada@example.com"
    )

    assert "2 hours" in sent_message(email_provider).text_body


@pytest.mark.asyncio
async def test_delivery_failure_is_reported_not_raised(notifier, email_provider):
    email_provider.send.side_effect = NotificationError("connection refused", provider="smtp")

    sent = await notifier.send(
        NotificationTemplate.EMAIL_VERIFICATION,
        "ada@example.com",
        OpaqueToken("tok"),
        "ada@example.com",
    )

    assert sent is False


@pytest.mark.asyncio
async def test_provider_declining_is_reported(notifier, email_provider):
    email_provider.send.return_value = False

    sent = await notifier.send(
        NotificationTemplate.EMAIL_VERIFICATION,
        "ada@example.com",
        OpaqueToken("tok"),
        "ada@example.com",
    )

    assert sent is False


@pytest.mark.asyncio
async def test_console_provider_accepts_everything():
    message = OutgoingEmail(
        to="ada@example.com",
        subject="Hi",
        html_body="<p>Hi</p>",
        text_body="Hi",
        from_email="no-reply@example.com",
        from_name="latchkey",
    )

    assert await ConsoleEmailProvider().send(message) is True


def test_provider_selection(settings):
    assert isinstance(build_notifier(settings).provider, ConsoleEmailProvider)

    smtp_settings = settings.model_copy(update={"email_provider": "smtp", "smtp_host": "mail.example.com"})
    provider = build_notifier(smtp_settings).provider

    assert isinstance(provider, SMTPProvider)
    assert provider.settings.host == "mail.example.com"
