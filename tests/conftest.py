from __future__ import annotations

import dataclasses
from datetime import date, datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.attendance_ledger.attendance_ledger.attendance.model import AttendanceEvent, AttendanceLogRow
from src.attendance_ledger.attendance_ledger.auth.tokens import Identity, TokenService
from src.attendance_ledger.attendance_ledger.container import wire
from src.attendance_ledger.attendance_ledger.core.enums import (
    CheckInMethod,
    EventType,
    RequestStatus,
    Role,
    UserStatus,
)
from src.attendance_ledger.attendance_ledger.core.exceptions import ConflictError, StorageConflict
from src.attendance_ledger.attendance_ledger.nfc.model import NFCTag
from src.attendance_ledger.attendance_ledger.requests.model import LeaveRequest, RequestRow, WFHRequest
from src.attendance_ledger.attendance_ledger.users.model import User

JWT_SECRET = "unit-test-secret-0123456789abcdef0123456789"
NOW = datetime(2025, 3, 10, 9, 0, 0)


class Clock:
    """Callable clock the tests can move."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class InMemoryUsers:
    def __init__(self):
        self.by_id: dict[int, User] = {}
        self._id = 0

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.email == email), None)

    def create_user(self, *, email, name, password_hash, role, status, department=None, position=None) -> int:
        if self.get_by_email(email):
            raise ConflictError("Email already exists")
        self._id += 1
        self.by_id[self._id] = User(
            user_id=self._id,
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
            status=status,
            department=department,
            position=position,
            created_at=NOW,
        )
        return self._id

    def update_user(self, user_id: int, **fields) -> bool:
        user = self.by_id.get(int(user_id))
        if not user:
            return False
        self.by_id[int(user_id)] = dataclasses.replace(user, **fields)
        return True

    def delete_by_id(self, user_id: int) -> bool:
        return self.by_id.pop(int(user_id), None) is not None

    def _filter(self, status=None, role=None, department=None):
        return [
            u
            for u in self.by_id.values()
            if (status is None or u.status == status)
            and (role is None or u.role == role)
            and (department is None or u.department == department)
        ]

    def list_users(self, *, status=None, role=None, department=None, limit=None, offset=0):
        items = sorted(self._filter(status, role, department), key=lambda u: u.user_id, reverse=True)
        return items[offset : offset + limit] if limit is not None else items[offset:]

    def count_users(self, *, status=None, role=None, department=None) -> int:
        return len(self._filter(status, role, department))

    # test helper
    def add(self, email, *, role=Role.EMPLOYEE, status=UserStatus.ACTIVE, password="secret123", department="Engineering", name=None) -> User:
        user_id = self.create_user(
            email=email,
            name=name or email.split("@")[0].title(),
            password_hash=generate_password_hash(password),
            role=role,
            status=status,
            department=department,
            position="Staff",
        )
        return self.by_id[user_id]


class InMemoryAttendance:
    """Ledger fake with the same one-open-session-per-day guard as the MySQL repository."""

    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.events: list[AttendanceEvent] = []
        self.open_sessions: dict[tuple[int, date], str] = {}
        self.conflicts_to_raise = 0
        self.append_calls = 0

    def append_event(
        self, *, user_id, type, method, token, session_id, created_at, latitude=None, longitude=None, closed_sessions=()
    ) -> int:
        self.append_calls += 1
        if self.conflicts_to_raise > 0:
            self.conflicts_to_raise -= 1
            raise StorageConflict("A session is already open for today")
        if type == EventType.IN:
            key = (int(user_id), created_at.date())
            if self.open_sessions.get(key) in closed_sessions:
                del self.open_sessions[key]
            if key in self.open_sessions:
                raise StorageConflict("A session is already open for today")
            self.open_sessions[key] = session_id
        else:
            for key, sid in list(self.open_sessions.items()):
                if key[0] == int(user_id) and sid == session_id:
                    del self.open_sessions[key]

        event = AttendanceEvent(
            event_id=len(self.events) + 1,
            user_id=int(user_id),
            type=type,
            method=method,
            token=token,
            session_id=session_id,
            created_at=created_at,
            latitude=latitude,
            longitude=longitude,
        )
        self.events.append(event)
        return event.event_id

    def _match(self, e, user_id=None, department=None, since=None, until=None) -> bool:
        if user_id is not None and e.user_id != int(user_id):
            return False
        if department:
            owner = self._users.get_by_id(e.user_id)
            if not owner or owner.department != department:
                return False
        if since is not None and e.created_at < since:
            return False
        if until is not None and e.created_at > until:
            return False
        return True

    def query_events(self, user_id, *, since=None, until=None):
        found = [e for e in self.events if self._match(e, user_id=user_id, since=since, until=until)]
        return sorted(found, key=lambda e: (e.created_at, e.event_id))

    def list_log_rows(self, *, user_id=None, department=None, since=None, until=None, limit=None, offset=0):
        found = [e for e in self.events if self._match(e, user_id, department, since, until)]
        found.sort(key=lambda e: (e.created_at, e.event_id), reverse=True)
        found = found[offset : offset + limit] if limit is not None else found[offset:]
        rows = []
        for e in found:
            u = self._users.get_by_id(e.user_id)
            rows.append(AttendanceLogRow(event=e, name=u.name, email=u.email, department=u.department, position=u.position))
        return rows

    def count_events(self, *, user_id=None, department=None, since=None, until=None) -> int:
        return sum(1 for e in self.events if self._match(e, user_id, department, since, until))

    # test helper
    def add(self, user_id, type, at, session_id, method=CheckInMethod.QR) -> AttendanceEvent:
        self.append_event(user_id=user_id, type=EventType(type), method=method, token="t", session_id=session_id, created_at=at)
        return self.events[-1]


class InMemoryRequests:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.leaves: dict[int, LeaveRequest] = {}
        self.wfh: dict[int, WFHRequest] = {}
        self._id = 0

    def _next_id(self) -> int:
        self._id += 1
        return self._id

    def _rows(self, items, status, user_id, updated_since, limit):
        found = [
            r
            for r in items
            if (status is None or r.status == status)
            and (user_id is None or r.user_id == int(user_id))
            and (updated_since is None or (r.updated_at or r.created_at) >= updated_since)
        ]
        found.sort(key=lambda r: (r.created_at, r.request_id), reverse=True)
        rows = []
        for r in found[:limit]:
            u = self._users.get_by_id(r.user_id)
            rows.append(RequestRow(request=r, name=u.name, email=u.email, department=u.department, position=u.position))
        return rows

    def _decide(self, store, request_id, status, reviewed_by, reviewed_at, admin_comments) -> bool:
        req = store.get(int(request_id))
        if not req or req.status != RequestStatus.PENDING:
            return False
        store[int(request_id)] = dataclasses.replace(
            req,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            admin_comments=admin_comments,
            updated_at=reviewed_at,
        )
        return True

    def create_leave(self, *, user_id, start_date, end_date, reason, leave_type) -> int:
        rid = self._next_id()
        self.leaves[rid] = LeaveRequest(
            request_id=rid,
            user_id=int(user_id),
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            leave_type=leave_type,
            status=RequestStatus.PENDING,
            created_at=NOW,
            updated_at=NOW,
        )
        return rid

    def get_leave(self, *, request_id):
        return self.leaves.get(int(request_id))

    def list_leave_requests(self, *, status=None, user_id=None, updated_since=None, limit=200):
        return self._rows(self.leaves.values(), status, user_id, updated_since, limit)

    def decide_leave(self, *, request_id, status, reviewed_by, reviewed_at, admin_comments=None) -> bool:
        return self._decide(self.leaves, request_id, status, reviewed_by, reviewed_at, admin_comments)

    def delete_leave(self, *, request_id) -> bool:
        return self.leaves.pop(int(request_id), None) is not None

    def count_leave_requests(self, *, status=None) -> int:
        return sum(1 for r in self.leaves.values() if status is None or r.status == status)

    def create_wfh(self, *, user_id, work_date, reason) -> int:
        if self.find_wfh_for_date(user_id=user_id, work_date=work_date):
            raise ConflictError("You already have a WFH request for this date")
        rid = self._next_id()
        self.wfh[rid] = WFHRequest(
            request_id=rid,
            user_id=int(user_id),
            work_date=work_date,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=NOW,
            updated_at=NOW,
        )
        return rid

    def get_wfh(self, *, request_id):
        return self.wfh.get(int(request_id))

    def find_wfh_for_date(self, *, user_id, work_date):
        return next((r for r in self.wfh.values() if r.user_id == int(user_id) and r.work_date == work_date), None)

    def list_wfh_requests(self, *, status=None, user_id=None, updated_since=None, limit=200):
        return self._rows(self.wfh.values(), status, user_id, updated_since, limit)

    def decide_wfh(self, *, request_id, status, reviewed_by, reviewed_at, admin_comments=None) -> bool:
        return self._decide(self.wfh, request_id, status, reviewed_by, reviewed_at, admin_comments)

    def delete_wfh(self, *, request_id) -> bool:
        return self.wfh.pop(int(request_id), None) is not None


class InMemoryNFCTags:
    def __init__(self):
        self.tags: dict[int, NFCTag] = {}

    def create_tag(self, *, uid, label, location, created_by) -> int:
        if any(t.uid == uid for t in self.tags.values()):
            raise ConflictError("Tag UID already registered")
        tag_id = len(self.tags) + 1
        self.tags[tag_id] = NFCTag(tag_id=tag_id, uid=uid, label=label, location=location, created_by=created_by, created_at=NOW)
        return tag_id

    def get_by_id(self, tag_id):
        return self.tags.get(int(tag_id))

    def list_all(self):
        return sorted(self.tags.values(), key=lambda t: t.tag_id, reverse=True)


class RecordingNotifier:
    def __init__(self, error: Optional[Exception] = None):
        self.sent: list[tuple] = []
        self.error = error

    def send(self, device_token, title, body, data=None) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((device_token, title, body, data))


def identity_of(user: User) -> Identity:
    return Identity(user_id=user.user_id, email=user.email, role=user.role)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def tokens(clock) -> TokenService:
    return TokenService(JWT_SECRET, clock=clock)


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def attendance_repo(users_repo) -> InMemoryAttendance:
    return InMemoryAttendance(users_repo)


@pytest.fixture
def requests_repo(users_repo) -> InMemoryRequests:
    return InMemoryRequests(users_repo)


@pytest.fixture
def nfc_repo() -> InMemoryNFCTags:
    return InMemoryNFCTags()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def admin(users_repo) -> User:
    return users_repo.add("admin@company.com", role=Role.ADMIN, password="admin123", department="IT", name="Admin")


@pytest.fixture
def employee(users_repo) -> User:
    return users_repo.add("john.doe@company.com", password="employee123", name="John Doe")


@pytest.fixture
def container(users_repo, attendance_repo, requests_repo, nfc_repo, tokens, notifier):
    return wire(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        nfc_repo=nfc_repo,
        tokens=tokens,
        notifier=notifier,
    )


@pytest.fixture
def admin_identity(admin) -> Identity:
    return identity_of(admin)


@pytest.fixture
def employee_identity(employee) -> Identity:
    return identity_of(employee)
