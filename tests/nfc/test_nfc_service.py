import pytest

from src.attendance_ledger.attendance_ledger.core.exceptions import AuthorizationError, ConflictError, ValidationError
from src.attendance_ledger.attendance_ledger.nfc.service import NFCTagService


@pytest.fixture
def svc(nfc_repo):
    return NFCTagService(nfc_repo)


def test_register_and_list_tags(svc, admin_identity):
    first = svc.register_tag(admin_identity, uid=" nfc_lobby ", label="Lobby", location="Ground floor")
    second = svc.register_tag(admin_identity, uid="04A1B2", label="Dock", location=" ")

    assert first.uid == "nfc_lobby"
    assert first.created_by == admin_identity.user_id
    assert second.location is None
    assert [t.tag_id for t in svc.list_tags(admin_identity)] == [second.tag_id, first.tag_id]


def test_register_requires_uid_and_label(svc, admin_identity):
    with pytest.raises(ValidationError, match="UID and label are required"):
        svc.register_tag(admin_identity, uid="nfc_x", label="")


def test_duplicate_uid_conflicts(svc, admin_identity):
    svc.register_tag(admin_identity, uid="nfc_x", label="X")

    with pytest.raises(ConflictError, match="already registered"):
        svc.register_tag(admin_identity, uid="nfc_x", label="Y")


def test_only_admins_register_tags(svc, employee_identity):
    with pytest.raises(AuthorizationError):
        svc.register_tag(employee_identity, uid="nfc_x", label="X")
