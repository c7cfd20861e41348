import pytest
from werkzeug.security import check_password_hash

from src.attendance_ledger.attendance_ledger.core.enums import Role, UserStatus
from src.attendance_ledger.attendance_ledger.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.attendance_ledger.attendance_ledger.users.service import AuthService, UserService


@pytest.fixture
def auth(users_repo, tokens):
    return AuthService(users_repo, tokens)


@pytest.fixture
def users(users_repo):
    return UserService(users_repo)


def test_register_creates_pending_employee(auth):
    user = auth.register(email="  New.Person@Company.com", password="secret1", name="New Person", department="Ops")

    assert user.email == "new.person@company.com"
    assert user.role == Role.EMPLOYEE
    assert user.status == UserStatus.PENDING
    assert check_password_hash(user.password_hash, "secret1")


@pytest.mark.parametrize(
    "email, password, name, message",
    [
        ("not-an-email", "secret1", "X", "Invalid email format"),
        ("a@b.co", "short", "X", "at least 6 characters"),
        ("a@b.co", "secret1", "  ", "Name is required"),
    ],
)
def test_register_validation(auth, email, password, name, message):
    with pytest.raises(ValidationError, match=message):
        auth.register(email=email, password=password, name=name)


def test_register_duplicate_email(auth, employee):
    with pytest.raises(ValidationError, match="already exists"):
        auth.register(email=employee.email, password="secret1", name="Copy")


def test_pending_user_cannot_login_until_approved(auth, users, admin_identity):
    user = auth.register(email="p@company.com", password="secret1", name="P")

    with pytest.raises(AuthenticationError, match="not active"):
        auth.login("p@company.com", "secret1")

    users.set_status(admin_identity, user_id=user.user_id, status="active")
    result = auth.login("P@company.com", "secret1")
    assert result.user.user_id == user.user_id


def test_login_issues_identity_token(auth, tokens, employee):
    result = auth.login(employee.email, "employee123")

    identity = tokens.verify_identity(result.token)
    assert identity.user_id == employee.user_id
    assert identity.role == Role.EMPLOYEE


def test_login_with_wrong_password_or_unknown_email(auth, employee):
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth.login(employee.email, "wrong-password")
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth.login("ghost@company.com", "whatever")
    with pytest.raises(ValidationError):
        auth.login("", "")


def test_set_status_rejects_pending_and_requires_admin(users, employee, employee_identity, admin_identity):
    with pytest.raises(ValidationError):
        users.set_status(admin_identity, user_id=employee.user_id, status="pending")
    with pytest.raises(AuthorizationError):
        users.set_status(employee_identity, user_id=employee.user_id, status="inactive")

    assert users.set_status(admin_identity, user_id=employee.user_id, status="inactive").status == UserStatus.INACTIVE


def test_list_users_filters_and_pages(users, users_repo, admin_identity, employee):
    users_repo.add("p1@company.com", status=UserStatus.PENDING)
    users_repo.add("p2@company.com", status=UserStatus.PENDING)

    pending = users.list_users(admin_identity, status="pending", limit=1)
    assert pending.total == 2
    assert pending.total_pages == 2
    assert len(pending.items) == 1

    with pytest.raises(ValidationError):
        users.list_users(admin_identity, role="boss")


def test_admin_creates_active_user_and_duplicates_conflict(users, admin_identity):
    user = users.create_user(admin_identity, email="x@company.com", password="secret1", name="X")
    assert user.status == UserStatus.ACTIVE
    assert user.role == Role.EMPLOYEE

    with pytest.raises(ConflictError):
        users.create_user(admin_identity, email="x@company.com", password="secret1", name="X2")


def test_update_user_partial(users, admin_identity, employee):
    updated = users.update_user(
        admin_identity, user_id=employee.user_id, department="Finance", role="admin", password="brand-new"
    )

    assert updated.department == "Finance"
    assert updated.role == Role.ADMIN
    assert updated.name == employee.name
    assert check_password_hash(updated.password_hash, "brand-new")


def test_update_user_email_taken(users, admin_identity, admin, employee):
    with pytest.raises(ConflictError):
        users.update_user(admin_identity, user_id=employee.user_id, email=admin.email)


def test_admin_cannot_demote_or_delete_self(users, admin_identity):
    with pytest.raises(ValidationError):
        users.update_user(admin_identity, user_id=admin_identity.user_id, role="employee")
    with pytest.raises(ValidationError):
        users.delete_user(admin_identity, user_id=admin_identity.user_id)


def test_delete_user(users, users_repo, admin_identity, employee):
    users.delete_user(admin_identity, user_id=employee.user_id)

    assert users_repo.get_by_id(employee.user_id) is None
    with pytest.raises(NotFoundError):
        users.delete_user(admin_identity, user_id=employee.user_id)


def test_change_password(users, users_repo, employee_identity):
    with pytest.raises(ValidationError, match="Current password is incorrect"):
        users.change_password(employee_identity, current_password="nope", new_password="another1")

    users.change_password(employee_identity, current_password="employee123", new_password="another1")
    assert check_password_hash(users_repo.get_by_id(employee_identity.user_id).password_hash, "another1")


def test_profile_and_device_token(users, users_repo, employee_identity):
    user = users.update_profile(employee_identity, position="Lead")
    assert user.position == "Lead"
    assert user.department == "Engineering"

    users.set_device_token(employee_identity, "  fcm-token  ")
    assert users_repo.get_by_id(employee_identity.user_id).device_token == "fcm-token"


def test_public_view_hides_password(employee):
    view = employee.public_view()

    assert "password_hash" not in view
    assert view["email"] == employee.email
    assert view["role"] == "employee"
