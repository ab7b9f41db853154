from dataclasses import dataclass, field
from uuid import NAMESPACE_DNS, UUID, uuid5

from fastapi import Depends, Header, HTTPException, status

from api.config.logging import bind_owner
from api.config.settings import AuthMode, settings


def string_to_uuid(text: str) -> UUID:
    """Convert a string to a deterministic UUID using namespace DNS."""
    return uuid5(NAMESPACE_DNS, text)


@dataclass
class Principal:
    """The owner on whose behalf a request runs."""

    user_id: str
    roles: list[str] = field(default_factory=list)
    email: str | None = None

    @property
    def user_uuid(self) -> UUID:
        """Get the user ID as a UUID for database operations."""
        try:
            return UUID(self.user_id)
        except ValueError:
            return string_to_uuid(self.user_id)

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == settings.dev_user_id


async def get_principal(
    x_user_id: str | None = Header(None, alias="X-User-ID"),
) -> Principal:
    """
    Dependency injection function to get the current principal.

    Behavior based on AUTH_MODE:
    - none: every request belongs to the anonymous default owner
    - dev: owner taken from the X-User-ID header, anonymous when absent
    - oidc: token verification is handled by the deployment gateway
    """
    if settings.auth_mode == AuthMode.NONE:
        principal = Principal(user_id=settings.dev_user_id, roles=["owner"])
    elif settings.auth_mode == AuthMode.DEV:
        principal = Principal(user_id=x_user_id or settings.dev_user_id, roles=["owner"])
    elif settings.auth_mode == AuthMode.OIDC:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail="OIDC auth mode is not available in this deployment",
        )
    else:
        raise ValueError(f"Unknown auth mode: {settings.auth_mode}")

    bind_owner(principal.user_id)
    return principal


# Convenience type alias for dependency injection
PrincipalDep = Depends(get_principal)
