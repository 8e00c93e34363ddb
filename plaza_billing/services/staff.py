"""Staff accounts: identity-provider credentials plus ``users`` profiles."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from plaza_billing.auth import IdentityProvider
from plaza_billing.exceptions import DuplicateCredentialError, RecordNotFoundError, ValidationError
from plaza_billing.models import Permission, Role, StaffUser
from plaza_billing.store.base import USERS, DocumentStore
from plaza_billing.store.serialization import from_document, to_document

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _check_credentials(email: str, password: str | None) -> None:
    if not (email or "").strip():
        raise ValidationError("Email is required")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def _permissions(values: Iterable[Permission | str]) -> list[Permission]:
    try:
        return [Permission(v) for v in values]
    except ValueError as e:
        raise ValidationError(str(e)) from e


class StaffDirectory:
    """Manage operator accounts.

    Passwords only ever go to the identity provider; the ``users`` profile
    holds role, permissions and display data.
    """

    def __init__(self, provider: IdentityProvider, store: DocumentStore) -> None:
        self.provider = provider
        self.store = store

    def _save_profile(self, user: StaffUser) -> None:
        doc = to_document(user)
        doc.pop("uid", None)
        doc["createdAt"] = datetime.now().isoformat(timespec="seconds")
        self.store.set(USERS, user.uid, doc)

    def sign_up(self, email: str, password: str, display_name: str) -> StaffUser:
        """Register a new administrator and sign in as them."""
        _check_credentials(email, password)
        auth_user = self.provider.sign_up(email, password)
        user = StaffUser(
            uid=auth_user.uid,
            email=email,
            display_name=display_name or email.split("@")[0],
            role=Role.ADMIN,
            permissions=list(Permission),
        )
        self._save_profile(user)
        logger.info("Registered administrator %s", email)
        return user

    def add_staff(
        self,
        email: str,
        password: str,
        display_name: str,
        permissions: Iterable[Permission] = (),
    ) -> StaffUser:
        """Create a staff credential and its profile.

        Raises
        ------
        DuplicateCredentialError
            If the email is already registered with the identity provider.
        """
        _check_credentials(email, password)
        if not (display_name or "").strip():
            raise ValidationError("Display name is required")
        try:
            auth_user = self.provider.create_user(email, password)
        except DuplicateCredentialError:
            logger.warning("Staff email %s already in use", email)
            raise
        user = StaffUser(
            uid=auth_user.uid,
            email=email,
            display_name=display_name,
            role=Role.STAFF,
            permissions=_permissions(permissions),
        )
        self._save_profile(user)
        logger.info("Added staff member %s", email)
        return user

    def update_staff(
        self,
        uid: str,
        display_name: str | None = None,
        role: Role | None = None,
        permissions: Iterable[Permission] | None = None,
    ) -> None:
        changes: dict[str, object] = {}
        if display_name is not None:
            changes["displayName"] = display_name
        if role is not None:
            try:
                changes["role"] = Role(role).value
            except ValueError as e:
                raise ValidationError(f"Unknown role {role!r}") from e
        if permissions is not None:
            changes["permissions"] = [p.value for p in _permissions(permissions)]
        if not changes:
            return
        self.store.update(USERS, uid, changes)
        logger.info("Updated staff profile %s", uid)

    def delete_staff(self, uid: str) -> None:
        """Remove the profile; the provider credential is left in place."""
        self.store.delete(USERS, uid)
        logger.info("Removed staff profile %s", uid)

    def reset_password(self, email: str) -> None:
        """Send a reset email to a known staff member."""
        if not (email or "").strip():
            raise ValidationError("Email is required")
        if not self.store.query(USERS, "email", email):
            raise RecordNotFoundError(f"Email {email} not found in staff records")
        self.provider.send_password_reset(email)
        logger.info("Password reset sent to %s", email)

    def list_staff(self) -> list[StaffUser]:
        return [from_document(StaffUser, doc) for doc in self.store.list(USERS)]
