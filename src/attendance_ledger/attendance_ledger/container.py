from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.reconciler import SessionReconciler
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .auth.tokens import TokenService
from .core.constants import DEFAULT_QR_EXPIRY_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .nfc.mysql_nfc_tag_repository import MySQLNFCTagRepository
from .nfc.repository import NFCTagRepository
from .nfc.service import NFCTagService
from .notifications.feed import NotificationFeed
from .notifications.notifier import LoggingNotifier, Notifier
from .reports.service import AnalyticsService, ReportService
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.repository import RequestRepository
from .requests.service import RequestService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    requests_repo: RequestRepository
    nfc_repo: NFCTagRepository

    tokens: TokenService
    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    request_service: RequestService
    nfc_service: NFCTagService
    report_service: ReportService
    analytics_service: AnalyticsService
    notification_feed: NotificationFeed

    qr_expiry_minutes: int = DEFAULT_QR_EXPIRY_MINUTES


def wire(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    requests_repo: RequestRepository,
    nfc_repo: NFCTagRepository,
    tokens: TokenService,
    notifier: Optional[Notifier] = None,
    qr_expiry_minutes: int = DEFAULT_QR_EXPIRY_MINUTES,
) -> Container:
    """Build services on top of any repository implementations (MySQL in the app, fakes in tests)."""

    reconciler = SessionReconciler()
    return Container(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        nfc_repo=nfc_repo,
        tokens=tokens,
        auth_service=AuthService(users_repo, tokens),
        user_service=UserService(users_repo),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            tokens,
            notifier=notifier if notifier is not None else LoggingNotifier(),
            reconciler=reconciler,
        ),
        request_service=RequestService(requests_repo),
        nfc_service=NFCTagService(nfc_repo),
        report_service=ReportService(attendance_repo, reconciler),
        analytics_service=AnalyticsService(attendance_repo, users_repo, reconciler),
        notification_feed=NotificationFeed(users_repo, requests_repo),
        qr_expiry_minutes=int(qr_expiry_minutes),
    )


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    qr_expiry_minutes: int = DEFAULT_QR_EXPIRY_MINUTES,
    notifier: Optional[Notifier] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        requests_repo=MySQLRequestRepository(conn),
        nfc_repo=MySQLNFCTagRepository(conn),
        tokens=TokenService(jwt_secret),
        notifier=notifier,
        qr_expiry_minutes=qr_expiry_minutes,
    )
