"""Caller identity, resolved once per request at the view boundary.

Handlers never inspect ``request.user`` themselves; they receive ``caller``,
which is either an :class:`Identity` or the :data:`ANONYMOUS` sentinel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Optional, Union

from blood.exceptions import Forbidden, Unauthorized

ROLE_ADMIN = "admin"
ROLE_USER = "user"


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str
    name: str
    role: str
    phone: str = ""
    user: Any = field(default=None, compare=False, repr=False)

    is_authenticated = True

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def as_dict(self):
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
        }


class Anonymous:
    user_id: Optional[str] = None
    email = ""
    name = ""
    role = None
    phone = ""
    user = None
    is_authenticated = False
    is_admin = False

    def __repr__(self):
        return "Anonymous()"


ANONYMOUS = Anonymous()

Caller = Union[Identity, Anonymous]


def identity_for_user(user) -> Identity:
    from blood.models import AccountProfile

    phone = AccountProfile.objects.filter(user=user).values_list("phone", flat=True).first() or ""
    role = ROLE_ADMIN if (user.is_staff or user.is_superuser) else ROLE_USER
    return Identity(
        user_id=str(user.pk),
        email=(user.email or "").strip().lower(),
        name=user.get_full_name() or user.username,
        role=role,
        phone=phone,
        user=user,
    )


def resolve_identity(request) -> Caller:
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return ANONYMOUS
    return identity_for_user(user)


def require_identity(caller: Caller) -> Identity:
    if not caller.is_authenticated:
        raise Unauthorized("Authentication required")
    return caller


def require_admin(caller: Caller) -> Identity:
    identity = require_identity(caller)
    if not identity.is_admin:
        raise Forbidden("Admin access required")
    return identity


def optional_auth(view):
    """Pass the resolved caller (identity or anonymous) to the view."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        kwargs["caller"] = resolve_identity(request)
        return view(request, *args, **kwargs)

    return wrapper


def authenticate(view):
    """Like :func:`optional_auth` but rejects anonymous callers with 401."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        kwargs["caller"] = require_identity(resolve_identity(request))
        return view(request, *args, **kwargs)

    return wrapper
