"""
services/container.py
---------------------
Builds every service once, around the shared Database and NotificationHub.
The bot stores the result in ``application.bot_data["services"]``.
"""

from dataclasses import dataclass

from db.connection import Database
from notifications.hub import NotificationHub
from services.analytics_service import AnalyticsService
from services.attendance_service import AttendanceService
from services.audit_service import AuditService
from services.auth_service import AuthService
from services.backup_service import BackupService
from services.chart_service import ChartService
from services.event_service import EventService
from services.export_service import ExportService
from services.feedback_service import FeedbackService
from services.guest_service import GuestService
from services.notification_service import NotificationService
from services.registration_service import RegistrationService
from services.user_service import UserService


@dataclass
class Services:
    auth: AuthService
    users: UserService
    events: EventService
    registrations: RegistrationService
    attendance: AttendanceService
    feedback: FeedbackService
    guests: GuestService
    notifications: NotificationService
    audit: AuditService
    analytics: AnalyticsService
    export: ExportService
    charts: ChartService
    backups: BackupService


def build_services(db: Database, hub: NotificationHub) -> Services:
    analytics = AnalyticsService(db)
    return Services(
        auth=AuthService(db),
        users=UserService(db),
        events=EventService(db, hub),
        registrations=RegistrationService(db, hub),
        attendance=AttendanceService(db),
        feedback=FeedbackService(db),
        guests=GuestService(db, hub),
        notifications=NotificationService(db, hub),
        audit=AuditService(db),
        analytics=analytics,
        export=ExportService(db),
        charts=ChartService(analytics),
        backups=BackupService(db),
    )
