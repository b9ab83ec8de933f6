"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Header, Request

from aurora.exceptions import UnauthenticatedError
from aurora.models.session import UserIdentity
from aurora.services.container import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_current_user(
    services: Annotated[Services, Depends(get_services)],
    authorization: Annotated[str | None, Header()] = None,
) -> UserIdentity:
    """Resolve the ``Authorization: Bearer <token>`` header to a user.

    Raises:
        UnauthenticatedError: Missing, malformed or rejected token
    """
    if not authorization:
        raise UnauthenticatedError("Unauthorized")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthenticatedError("Unauthorized")

    user = await services.sessions.resolve(token.strip())
    if user is None:
        raise UnauthenticatedError("Unauthorized")
    return user


ServicesDep = Annotated[Services, Depends(get_services)]
CurrentUser = Annotated[UserIdentity, Depends(get_current_user)]
