from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Literal

logger = logging.getLogger(__name__)

Role = Literal["loading", "admin", "client", "unauthorized"]
AuthEventType = Literal["initial", "signed_in", "signed_out", "token_refreshed", "user_updated"]

ClientLookup = Callable[[str], Any]


@dataclass(frozen=True)
class AuthEvent:
    type: AuthEventType
    email: str | None = None


@dataclass(frozen=True)
class RoleDecision:
    role: Role
    email: str | None = None
    client: Any | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_client(self) -> bool:
        return self.role == "client" and self.client is not None


LOADING = RoleDecision(role="loading")


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    normalized = email.strip().lower()
    return normalized or None


def classify_identity(email: str | None, admin_emails: Iterable[str], find_client: ClientLookup) -> RoleDecision:
    """Map an authenticated email to exactly one access mode.

    The admin allow-list wins over a client record with the same email.
    A failing client lookup classifies as ``unauthorized``.
    """
    normalized = normalize_email(email)
    if normalized is None:
        return RoleDecision(role="unauthorized")

    if normalized in {normalize_email(item) for item in admin_emails}:
        return RoleDecision(role="admin", email=normalized)

    try:
        client = find_client(normalized)
    except Exception:
        logger.exception("client lookup failed during role classification: email=%s", normalized)
        return RoleDecision(role="unauthorized", email=normalized)

    if client is not None:
        return RoleDecision(role="client", email=normalized, client=client)
    return RoleDecision(role="unauthorized", email=normalized)


class RoleSession:
    """Role state for one authentication session.

    Starts in ``loading`` and is recomputed from scratch on every auth event;
    nothing survives a sign-out.
    """

    def __init__(self, admin_emails: Iterable[str], find_client: ClientLookup):
        self.admin_emails = [item for item in (normalize_email(e) for e in admin_emails) if item]
        self.find_client = find_client
        self.decision: RoleDecision = LOADING
        self._listeners: list[Callable[[RoleDecision], None]] = []

    @property
    def role(self) -> Role:
        return self.decision.role

    def subscribe(self, listener: Callable[[RoleDecision], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def handle(self, event: AuthEvent) -> RoleDecision:
        email = None if event.type == "signed_out" else event.email
        self.decision = classify_identity(email, self.admin_emails, self.find_client)
        logger.debug("role classified: event=%s role=%s", event.type, self.decision.role)
        for listener in list(self._listeners):
            listener(self.decision)
        return self.decision
