"""
models/constants.py
-------------------
Application-wide enumerations: roles, event lifecycle, notification
types, audit actions and the per-role permission sets.
"""

# ── Roles ─────────────────────────────────────────────────
ROLE_STUDENT = "student"
ROLE_CLUB_REPRESENTATIVE = "club_representative"
ROLE_ADMIN = "admin"
ROLE_GUEST = "guest"

ROLES: tuple[str, ...] = (ROLE_STUDENT, ROLE_CLUB_REPRESENTATIVE, ROLE_ADMIN, ROLE_GUEST)

# ── Event status ──────────────────────────────────────────
EVENT_PENDING = "pending"
EVENT_APPROVED = "approved"
EVENT_REJECTED = "rejected"
EVENT_CANCELLED = "cancelled"

EVENT_STATUSES: tuple[str, ...] = (EVENT_PENDING, EVENT_APPROVED, EVENT_REJECTED, EVENT_CANCELLED)

# ── Attendance / guests ───────────────────────────────────
ATTENDANCE_PRESENT = "present"
ATTENDANCE_ABSENT = "absent"
ATTENDANCE_STATUSES: tuple[str, ...] = (ATTENDANCE_PRESENT, ATTENDANCE_ABSENT)

GUEST_INVITED = "invited"
GUEST_CONFIRMED = "confirmed"
GUEST_CANCELLED = "cancelled"

# ── Notification types ────────────────────────────────────
NOTIFY_EVENT_SUBMITTED = "event_submitted"
NOTIFY_EVENT_APPROVED = "event_approved"
NOTIFY_EVENT_REJECTED = "event_rejected"
NOTIFY_EVENT_UPDATED = "event_updated"
NOTIFY_NEW_REGISTRATION = "new_registration"
NOTIFY_REGISTRATION_CONFIRMED = "registration_confirmed"
NOTIFY_REGISTRATION_CANCELLED = "registration_cancelled"
NOTIFY_GUEST_INVITED = "guest_invited"
NOTIFY_EVENT_REMINDER = "event_reminder"

# ── Audit log actions ─────────────────────────────────────
LOG_LOGIN = "login"
LOG_LOGOUT = "logout"
LOG_EVENT_CREATED = "event_created"
LOG_EVENT_UPDATED = "event_updated"
LOG_EVENT_DELETED = "event_deleted"
LOG_EVENT_APPROVED = "event_approved"
LOG_EVENT_REJECTED = "event_rejected"
LOG_REGISTRATION_CREATED = "registration_created"
LOG_REGISTRATION_CANCELLED = "registration_cancelled"
LOG_FEEDBACK_SUBMITTED = "feedback_submitted"
LOG_GUEST_INVITED = "guest_invited"
LOG_ATTENDANCE_MARKED = "attendance_marked"
LOG_BACKUP_CREATED = "backup_created"
LOG_BACKUP_RESTORED = "backup_restored"

# ── Permissions ───────────────────────────────────────────
PERMISSIONS: dict[str, tuple[str, ...]] = {
    ROLE_STUDENT: (
        "view_events",
        "register_event",
        "cancel_registration",
        "view_own_registrations",
    ),
    ROLE_CLUB_REPRESENTATIVE: (
        "view_events",
        "create_event",
        "edit_own_event",
        "delete_own_event",
        "view_own_event_registrations",
        "register_event",
    ),
    ROLE_ADMIN: (
        "view_events",
        "create_event",
        "edit_any_event",
        "delete_any_event",
        "approve_event",
        "reject_event",
        "view_all_registrations",
        "view_analytics",
        "manage_users",
        "view_logs",
        "create_backup",
    ),
    ROLE_GUEST: ("view_events",),
}


def has_permission(role: str, permission: str) -> bool:
    """Check whether a role grants a permission."""
    return permission in PERMISSIONS.get(role, ())
