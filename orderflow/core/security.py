from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from orderflow.core.config import get_settings
from orderflow.domain.access.roles import AuthEvent, RoleDecision, RoleSession
from orderflow.persistence.models import ClientModel
from orderflow.persistence.pg import get_session
from orderflow.persistence.stores import ClientStore


class Identity(BaseModel):
    email: str | None = None


def _auth_error(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def _extract_api_key(authorization: str | None, x_api_key: str | None) -> str | None:
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise _auth_error("invalid authorization header")
        return token.strip()
    if x_api_key and x_api_key.strip():
        return x_api_key.strip()
    return None


def get_identity(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None),
    x_authenticated_email: str | None = Header(default=None),
) -> Identity:
    """Identity forwarded by the authentication gateway.

    A request without an email is anonymous, not an error; only a wrong
    gateway key is rejected here.
    """
    settings = get_settings()
    if not settings.auth_enabled:
        return Identity(email=x_authenticated_email or settings.dev_identity_email)

    api_key = _extract_api_key(authorization, x_api_key)
    if api_key is None:
        return Identity(email=None)
    if not hmac.compare_digest(api_key.encode("utf-8"), settings.gateway_api_key.encode("utf-8")):
        raise _auth_error("invalid gateway key")
    return Identity(email=x_authenticated_email)


def classify_request(identity: Identity, session: Session) -> RoleDecision:
    settings = get_settings()
    role_session = RoleSession(settings.admin_emails, ClientStore(session).find_by_email)
    event_type = "signed_in" if identity.email else "signed_out"
    return role_session.handle(AuthEvent(type=event_type, email=identity.email))


def get_access(
    identity: Identity = Depends(get_identity),
    session: Session = Depends(get_session),
) -> RoleDecision:
    return classify_request(identity, session)


def require_admin(access: RoleDecision = Depends(get_access)) -> RoleDecision:
    if access.email is None:
        raise _auth_error("authentication required")
    if not access.is_admin:
        raise HTTPException(status_code=403, detail="admin role required")
    return access


def require_client(access: RoleDecision = Depends(get_access)) -> ClientModel:
    if access.email is None:
        raise _auth_error("authentication required")
    if not access.is_client:
        raise HTTPException(status_code=403, detail="client role required")
    return access.client
