"""FastAPI dependencies for the auth routes.

Each dependency can be replaced through ``app.dependency_overrides``, which
is how tests swap in an in-memory session or a mocked notifier.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from latchkey.core.config import get_settings
from latchkey.domain.services.auth_service import AuthService
from latchkey.infrastructure.persistence.database import get_db_session
from latchkey.infrastructure.services.notifier import EmailNotifier, build_notifier

_notifier: EmailNotifier | None = None


def get_notifier() -> EmailNotifier:
    """Get the process-wide email notifier."""
    global _notifier
    if _notifier is None:
        _notifier = build_notifier(get_settings())
    return _notifier


async def get_auth_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    notifier: Annotated[EmailNotifier, Depends(get_notifier)],
) -> AuthService:
    """Build an auth service bound to the request's session."""
    return AuthService(session=session, notifier=notifier, settings=get_settings())


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
