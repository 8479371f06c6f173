"""Shared constants and enums used across the application."""

from enum import StrEnum


class UserRole(StrEnum):
    """Application roles for field staff accounts."""

    ADMIN = "admin"
    STAFF = "staff"


class ProfileStatus(StrEnum):
    """Collection status of a citizen profile."""

    COLLECTING = "collecting"
    COMPLETED = "completed"


class DocumentType(StrEnum):
    """Kinds of vehicle/identity documents attached to a profile."""

    LICENSE = "license"
    REGISTRATION = "registration"
    INSURANCE = "insurance"
    OTHER = "other"


DOCUMENT_TYPE_NAMES: dict[DocumentType, str] = {
    DocumentType.LICENSE: "Driving licence",
    DocumentType.REGISTRATION: "Vehicle registration",
    DocumentType.INSURANCE: "Vehicle insurance",
    DocumentType.OTHER: "Other document",
}


class OpenMode(StrEnum):
    """Mode requested when a profile is opened from the list."""

    VIEW = "view"
    EDIT = "edit"


class View(StrEnum):
    """Screen a client should show after an operation."""

    LIST = "list"
    CREATE = "create"
    COLLECTING = "collecting"
    DASHBOARD = "dashboard"
    ADMIN_USERS = "admin_users"


class ListTab(StrEnum):
    """Tabs of the profile list."""

    PENDING = "pending"
    APPROVED = "approved"


class ReportPeriod(StrEnum):
    """Time windows for dashboard statistics."""

    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class ApprovalPolicy(StrEnum):
    """Who may approve a profile."""

    PERMISSIVE = "permissive"  # any authenticated user
    RESTRICTED = "restricted"  # admins and users flagged canApprove


class PushFlagPolicy(StrEnum):
    """What a repeated approval does to the push flag."""

    FIRST = "first"  # flag fixed by the first approval
    OVERWRITE = "overwrite"  # every approval rewrites the flag


UNASSIGNED_AREA = "Unassigned"
