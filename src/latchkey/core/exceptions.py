"""Infrastructure exceptions.

Domain outcomes (weak password, expired link, ...) are returned as values and
never raised. Only failures of the collaborators the core depends on, the
user store and the mail transport, surface as exceptions.
"""


class InfrastructureError(Exception):
    """Base class for collaborator failures."""

    pass


class StoreError(InfrastructureError):
    """Raised when the user store cannot complete a read or write."""

    pass


class NotificationError(InfrastructureError):
    """Raised by an email provider when a message cannot be delivered."""

    def __init__(self, message: str, provider: str | None = None):
        self.provider = provider
        super().__init__(f"{provider}: {message}" if provider else message)
