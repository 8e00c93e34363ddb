"""Staff user model."""

from dataclasses import dataclass, field

from plaza_billing.models.enums import Permission, Role


@dataclass
class StaffUser:
    """Operator profile stored in the ``users`` collection.

    ``uid`` is the identity provider's user identifier. Stored ``permissions``
    are ignored for admins; see :mod:`plaza_billing.auth`.
    """

    uid: str
    email: str
    display_name: str
    role: Role
    permissions: list[Permission] = field(default_factory=list)
    photo_url: str | None = None
