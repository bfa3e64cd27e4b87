"""FastAPI dependency resolving the authenticated caller."""
import logging
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends, Header, HTTPException

from di.container import ApplicationContainer
from api.shared.identity import AuthenticatedUser, InvalidCredentials, JwtIdentityProvider

logger = logging.getLogger("chats.auth")


@inject
async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    identity_provider: JwtIdentityProvider = Depends(
        Provide[ApplicationContainer.infrastructure.identity_provider]
    ),
) -> AuthenticatedUser:
    """Resolve the caller from ``Authorization: Bearer <token>``.

    Missing credentials are 401, unverifiable ones 403.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    try:
        return identity_provider.verify(token)
    except InvalidCredentials as e:
        logger.info("Rejected token: %s", e)
        raise HTTPException(status_code=403, detail="Invalid token")
