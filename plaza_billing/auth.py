"""Authorization rules and identity-provider session handling.

The "admin implies every permission" override lives only in
:func:`effective_permissions`; every other check goes through it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from plaza_billing.exceptions import PermissionDeniedError, ValidationError
from plaza_billing.models import Permission, Role, StaffUser
from plaza_billing.store.base import USERS, Document, DocumentStore
from plaza_billing.store.serialization import from_document

logger = logging.getLogger(__name__)

ALL_PERMISSIONS = frozenset(Permission)
DEFAULT_STAFF_PERMISSIONS = frozenset({Permission.DASHBOARD})


def effective_permissions(user: StaffUser | None) -> frozenset[Permission]:
    """Permissions a user actually holds.

    Admins hold all permissions whatever their stored list says. Staff with no
    stored permissions fall back to the dashboard only.
    """
    if user is None:
        return frozenset()
    if user.role == Role.ADMIN:
        return ALL_PERMISSIONS
    return frozenset(user.permissions) or DEFAULT_STAFF_PERMISSIONS


def has_permission(user: StaffUser | None, permission: Permission) -> bool:
    return permission in effective_permissions(user)


def require_permission(user: StaffUser | None, permission: Permission) -> None:
    """Raise :class:`PermissionDeniedError` unless ``user`` holds ``permission``."""
    if not has_permission(user, permission):
        who = user.display_name if user else "Anonymous user"
        raise PermissionDeniedError(f"{who} lacks the {permission.value} permission")


def require_admin(user: StaffUser | None) -> None:
    if user is None or user.role != Role.ADMIN:
        raise PermissionDeniedError("Only administrators can manage staff accounts")


@dataclass(frozen=True)
class AuthUser:
    """Signed-in identity as reported by the identity provider."""

    uid: str
    email: str
    display_name: str | None = None


SessionCallback = Callable[[AuthUser | None], None]


class IdentityProvider(ABC):
    """Hosted identity provider used for credentials and sessions."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthUser:
        """Sign in and start a session."""

    @abstractmethod
    def sign_up(self, email: str, password: str) -> AuthUser:
        """Create a credential and sign in as it."""

    @abstractmethod
    def create_user(self, email: str, password: str) -> AuthUser:
        """Create a credential without touching the current session.

        Raises
        ------
        DuplicateCredentialError
            If the email is already registered.
        """

    @abstractmethod
    def sign_out(self) -> None:
        """End the current session."""

    @abstractmethod
    def send_password_reset(self, email: str) -> None:
        """Email a password-reset link."""

    @abstractmethod
    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Notify ``callback`` whenever the session user changes."""


class SessionManager:
    """Track the signed-in operator and their staff profile.

    The profile is read from the ``users`` document keyed by the provider's
    uid and kept live through a store subscription. A signed-in user without a
    profile becomes an administrator only while the staff directory is empty
    (first-run bootstrap); otherwise they get the default staff permissions.
    """

    def __init__(self, provider: IdentityProvider, store: DocumentStore) -> None:
        self.provider = provider
        self.store = store
        self.user: StaffUser | None = None
        self._auth_user: AuthUser | None = None
        self._unsubscribe_auth: Callable[[], None] | None = None
        self._unsubscribe_profile: Callable[[], None] | None = None

    def start(self) -> None:
        """Subscribe to session changes."""
        if self._unsubscribe_auth is None:
            self._unsubscribe_auth = self.provider.on_session_change(self._on_session_change)

    def stop(self) -> None:
        if self._unsubscribe_auth is not None:
            self._unsubscribe_auth()
            self._unsubscribe_auth = None
        self._drop_profile()

    def login(self, email: str, password: str | None) -> AuthUser:
        if not email:
            raise ValidationError("Email required")
        if not password:
            raise ValidationError("Password required")
        return self.provider.sign_in(email, password)

    def logout(self) -> None:
        self.provider.sign_out()

    def _drop_profile(self) -> None:
        if self._unsubscribe_profile is not None:
            self._unsubscribe_profile()
            self._unsubscribe_profile = None

    def _on_session_change(self, auth_user: AuthUser | None) -> None:
        self._drop_profile()
        self._auth_user = auth_user
        if auth_user is None:
            self.user = None
            logger.info("Session ended")
            return
        self._unsubscribe_profile = self.store.subscribe(USERS, self._on_users_snapshot)

    def _on_users_snapshot(self, docs: list[Document]) -> None:
        auth_user = self._auth_user
        if auth_user is None:
            return
        doc = next((d for d in docs if d.get("id") == auth_user.uid), None)
        if doc is not None:
            self.user = from_document(StaffUser, doc)
        else:
            role = Role.ADMIN if not docs else Role.STAFF
            self.user = StaffUser(
                uid=auth_user.uid,
                email=auth_user.email,
                display_name=auth_user.display_name or "User",
                role=role,
                permissions=sorted(
                    ALL_PERMISSIONS if role == Role.ADMIN else DEFAULT_STAFF_PERMISSIONS,
                    key=lambda p: p.value,
                ),
            )
            logger.warning("No staff profile for %s; using %s fallback", auth_user.email, role.value)
        logger.info("Session user %s (%s)", self.user.display_name, self.user.role.value)
