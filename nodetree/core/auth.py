"""Authentication: resolves the current user's permission set.

Public interface:
    ``require_auth`` -- returns AuthContext or raises 401.

When ``settings.auth_enabled`` is False every request runs as an anonymous
admin so the development workflow is unbroken.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Permission set of the authenticated user.

    ``permissions`` holds the capability flags (create, edit, delete, root,
    content). ``mounts`` are the node ids whose subtrees the user may browse.
    Admins bypass both.
    """

    user_id: str
    role: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    mounts: Tuple[int, ...] = ()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


_ANONYMOUS = AuthContext(user_id="anonymous", role="admin")


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid token and return the user's AuthContext."""
    if not settings.auth_enabled:
        return _ANONYMOUS

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return load_auth_context(payload, db)


def load_auth_context(payload: TokenPayload, db: Session) -> AuthContext:
    """Load capability flags and mounts for the token subject."""
    from ..repositories.user_repository import UserRepository

    repo = UserRepository(db)
    user = repo.get(payload.sub)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return AuthContext(
        user_id=user.user_id,
        role=user.role,
        permissions=frozenset(user.permission_list),
        mounts=tuple(repo.get_mount_ids(user.user_id)),
    )
