"""Outgoing email message and the provider interface that delivers it."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutgoingEmail:
    """A rendered email ready for delivery."""

    to: str
    subject: str
    html_body: str
    text_body: str
    from_email: str
    from_name: str
    reply_to: str | None = None

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_email}>"


class EmailProvider(ABC):
    """Delivers ``OutgoingEmail`` messages."""

    name: str = "abstract"

    @abstractmethod
    async def send(self, message: OutgoingEmail) -> bool:
        """Deliver one message.

        Returns True if the transport accepted it. Transport failures raise
        ``NotificationError``.
        """
