"""Authentication module exposing FastAPI dependencies.

Public interface:
    ``require_auth``: returns AuthContext or raises 401.
    ``require_policy(name)``: dependency factory; returns AuthContext or
                               raises 403 when the role lacks the policy.

When ``settings.auth_enabled`` is False every dependency returns an
anonymous admin context so local development needs no tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .logging_config import actor_id_var
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity and global role of the caller."""

    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


_ANONYMOUS = AuthContext(user_id="anonymous", role="admin")


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid bearer token and return the caller's AuthContext.

    When ``AUTH_ENABLED=false`` returns the anonymous admin context.
    """
    if not settings.auth_enabled:
        actor_id_var.set(_ANONYMOUS.user_id)
        return _ANONYMOUS

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    auth = _load_auth_context(payload, db)
    actor_id_var.set(auth.user_id)
    return auth


def require_policy(policy: str):
    """Build a dependency that admits only roles granted *policy*.

    Denials are written to the audit log as ``unauthorized_access``.
    """
    from ..services import access_policy, audit_service

    def _dependency(
        request: Request,
        auth: AuthContext = Depends(require_auth),
        db: Session = Depends(get_db),
    ) -> AuthContext:
        if access_policy.can(auth.role, policy):
            return auth
        logger.warning(
            "Access denied: user=%s role=%s policy=%s path=%s",
            auth.user_id, auth.role, policy, request.url.path,
        )
        audit_service.log(
            db,
            user_id=auth.user_id,
            action="unauthorized_access",
            resource_type=policy.split(".")[0],
            resource_id=request.path_params.get("order_id") or request.path_params.get("document_id"),
            details={"policy": policy, "role": auth.role, "path": request.url.path},
            ip_address=request.client.host if request.client else None,
        )
        raise ForbiddenError(f"Role '{auth.role}' is not allowed to perform {policy}")

    return _dependency


def _load_auth_context(payload: TokenPayload, db: Session) -> AuthContext:
    """Resolve the token subject to an active user, through the entity cache."""
    from ..models.user import User
    from ..services.cache_service import entity_cache

    cached = entity_cache.get("users", payload.sub)
    if cached is None:
        user = db.query(User).filter(User.user_id == payload.sub).first()
        if user is None:
            raise AuthenticationError("User not found")
        cached = {"user_id": user.user_id, "role": user.role, "is_active": user.is_active}
        entity_cache.set("users", payload.sub, cached)

    if not cached["is_active"]:
        raise AuthenticationError("Account is deactivated")

    return AuthContext(user_id=cached["user_id"], role=cached["role"])
