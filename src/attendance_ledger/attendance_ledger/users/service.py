from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..auth.guards import require_admin
from ..auth.tokens import Identity, TokenService
from ..common.paging import Page
from ..common.validators import (
    normalize_paging,
    optional_text,
    parse_enum,
    require_email,
    require_min_length,
    require_non_empty,
)
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role, UserStatus
from ..core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """What the client stores after login: bearer token plus a profile snapshot."""

    token: str
    user: User


class AuthService:
    """Use cases: register (pending approval) and login."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def register(
        self,
        *,
        email: str,
        password: str,
        name: str,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> User:
        email = require_email(email)
        name = require_non_empty(name, "Name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ValidationError("User with this email already exists")

        user_id = self._users.create_user(
            email=email,
            name=name,
            password_hash=generate_password_hash(password),
            role=Role.EMPLOYEE,
            status=UserStatus.PENDING,
            department=optional_text(department),
            position=optional_text(position),
        )
        logger.info("registered user %s (pending approval)", user_id)
        return self._users.get_by_id(user_id)

    def login(self, email: str, password: str) -> LoginResult:
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self._users.get_by_email(require_non_empty(email, "Email").lower())
        if not user:
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is not active. Please contact admin.")

        try:
            ok = check_password_hash(user.password_hash, password)
        except (TypeError, ValueError):
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False
        if not ok:
            raise AuthenticationError("Invalid email or password")

        token = self._tokens.issue_identity_token(user.user_id, user.email, user.role)
        return LoginResult(token=token, user=user)


class UserService:
    """Use cases: admin user management and self-service profile."""

    def __init__(self, users: UserRepository):
        self._users = users

    def _get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_profile(self, identity: Identity) -> User:
        return self._get(identity.user_id)

    def set_status(self, identity: Identity, *, user_id: int, status: str) -> User:
        require_admin(identity)
        new_status = parse_enum(UserStatus, status, "status")
        if new_status == UserStatus.PENDING:
            raise ValidationError('Status must be either "active" or "inactive"')

        self._get(user_id)
        self._users.update_user(int(user_id), status=new_status)
        logger.info("user %s set to %s by admin %s", user_id, new_status.value, identity.user_id)
        return self._get(user_id)

    def list_users(
        self,
        identity: Identity,
        *,
        status: Optional[str] = None,
        role: Optional[str] = None,
        department: Optional[str] = None,
        page=1,
        limit=None,
    ) -> Page[User]:
        require_admin(identity)
        page_i, limit_i = normalize_paging(page, limit)
        status_e = parse_enum(UserStatus, status, "status") if status else None
        role_e = parse_enum(Role, role, "role") if role else None

        items = self._users.list_users(
            status=status_e,
            role=role_e,
            department=department or None,
            limit=limit_i,
            offset=(page_i - 1) * limit_i,
        )
        total = self._users.count_users(status=status_e, role=role_e, department=department or None)
        return Page(items=list(items), page=page_i, limit=limit_i, total=total)

    def create_user(
        self,
        identity: Identity,
        *,
        email: str,
        password: str,
        name: str,
        role: Optional[str] = None,
        status: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> User:
        require_admin(identity)
        email = require_email(email)
        name = require_non_empty(name, "Name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        role_e = parse_enum(Role, role, "role") if role else Role.EMPLOYEE
        status_e = parse_enum(UserStatus, status, "status") if status else UserStatus.ACTIVE

        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        user_id = self._users.create_user(
            email=email,
            name=name,
            password_hash=generate_password_hash(password),
            role=role_e,
            status=status_e,
            department=optional_text(department),
            position=optional_text(position),
        )
        return self._get(user_id)

    def update_user(self, identity: Identity, *, user_id: int, **changes) -> User:
        """Admin partial update. Accepts name, email, role, status, department, position, password."""

        require_admin(identity)
        self._get(user_id)

        fields: dict = {}
        if changes.get("name"):
            fields["name"] = require_non_empty(changes["name"], "Name")
        if changes.get("email"):
            email = require_email(changes["email"])
            other = self._users.get_by_email(email)
            if other and other.user_id != int(user_id):
                raise ConflictError("Email is already used by another user")
            fields["email"] = email
        if changes.get("role"):
            fields["role"] = parse_enum(Role, changes["role"], "role")
        if changes.get("status"):
            fields["status"] = parse_enum(UserStatus, changes["status"], "status")
        for key in ("department", "position"):
            if key in changes and changes[key] is not None:
                fields[key] = optional_text(changes[key])
        if changes.get("password"):
            require_min_length(changes["password"], "Password", MIN_PASSWORD_LENGTH)
            fields["password_hash"] = generate_password_hash(changes["password"])

        if int(user_id) == identity.user_id and fields.get("role", Role.ADMIN) != Role.ADMIN:
            raise ValidationError("You cannot remove your own admin role")

        self._users.update_user(int(user_id), **fields)
        return self._get(user_id)

    def delete_user(self, identity: Identity, *, user_id: int) -> None:
        require_admin(identity)
        if int(user_id) == identity.user_id:
            raise ValidationError("You cannot delete your own account")

        self._get(user_id)
        if not self._users.delete_by_id(int(user_id)):
            raise ValidationError("Failed to delete user")

    def update_profile(
        self,
        identity: Identity,
        *,
        name: Optional[str] = None,
        department: Optional[str] = None,
        position: Optional[str] = None,
    ) -> User:
        self._get(identity.user_id)
        fields: dict = {}
        if name is not None:
            fields["name"] = require_non_empty(name, "Name")
        if department is not None:
            fields["department"] = optional_text(department)
        if position is not None:
            fields["position"] = optional_text(position)
        self._users.update_user(identity.user_id, **fields)
        return self._get(identity.user_id)

    def set_device_token(self, identity: Identity, device_token: Optional[str]) -> None:
        self._get(identity.user_id)
        self._users.update_user(identity.user_id, device_token=optional_text(device_token))

    def change_password(self, identity: Identity, *, current_password: str, new_password: str) -> None:
        user = self._get(identity.user_id)
        try:
            ok = check_password_hash(user.password_hash, current_password or "")
        except (TypeError, ValueError):
            ok = False
        if not ok:
            raise ValidationError("Current password is incorrect")

        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)
        self._users.update_user(identity.user_id, password_hash=generate_password_hash(new_password))
