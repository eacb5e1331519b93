from __future__ import annotations

from enum import Enum


class SessionType(str, Enum):
    """Kind of work session a crew member can be clocked into."""

    WAREHOUSE = "warehouse"
    EVENT = "event"
    EXTRA = "extra"


class CheckInStatus(str, Enum):
    """Lifecycle of a warehouse/extra attendance row."""

    ACTIVE = "active"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"


class TimesheetStatus(str, Enum):
    """Approval lifecycle of an event timesheet entry."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID_BY_COMPANY = "paid_by_company"
    RECEIVED_BY_CREW = "received_by_crew"
    CONFIRMED = "confirmed"


class TrackingType(str, Enum):
    HOURS = "hours"
    DAYS = "days"


class OvertimeStatus(str, Enum):
    """Approval lifecycle of an overtime request (values as stored remotely)."""

    PENDING = "in_attesa"
    APPROVED = "approved"
    REJECTED = "rejected"


class MutationKind(str, Enum):
    """Operations that can be buffered while offline."""

    CHECKIN = "checkin"
    CHECKOUT = "checkout"
    EXPENSE = "expense"
    TIMESHEET = "timesheet"


class LocationErrorCode(int, Enum):
    """Geolocation failure codes (same numbering as the browser API)."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class ShiftTimingState(str, Enum):
    WRONG_DAY_PAST = "wrong_day_past"
    WRONG_DAY_FUTURE = "wrong_day_future"
    TOO_EARLY = "too_early"
    EARLY_ALLOWED = "early_allowed"
    NIGHT_EARLY_ALLOWED = "night_early_allowed"
    NIGHT_TOO_EARLY = "night_too_early"
    ACTIVE = "active"
    EXPIRED = "expired"


class ScanState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    COOLDOWN = "cooldown"
