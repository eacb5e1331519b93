from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.time_format import format_minutes_compact
from ..core.enums import OvertimeStatus

OVERTIME_TABLE = "overtime_requests"


@dataclass(frozen=True)
class OvertimeRequest:
    id: str
    crew_id: str
    minutes: int
    hourly_rate: float
    total_amount: float
    note: str
    status: OvertimeStatus = OvertimeStatus.PENDING
    attendance_id: Optional[str] = None
    timesheet_entry_id: Optional[str] = None
    event_id: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "minutes": self.minutes,
            "formatted": format_minutes_compact(self.minutes),
            "hourly_rate": self.hourly_rate,
            "total_amount": self.total_amount,
            "note": self.note,
            "status": self.status.value,
            "attendance_id": self.attendance_id,
            "timesheet_entry_id": self.timesheet_entry_id,
            "event_id": self.event_id,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class OvertimeCandidate:
    """A completed shift or event day that ran past the expected length."""

    source: str  # "warehouse" or "event"
    reference_id: str
    date: str
    title: str
    worked_minutes: int
    excess_minutes: int
    requestable_minutes: int
    event_id: Optional[str] = None
    already_requested: bool = False

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "reference_id": self.reference_id,
            "event_id": self.event_id,
            "date": self.date,
            "title": self.title,
            "worked_minutes": self.worked_minutes,
            "excess_minutes": self.excess_minutes,
            "requestable_minutes": self.requestable_minutes,
            "requestable_formatted": format_minutes_compact(self.requestable_minutes),
            "already_requested": self.already_requested,
        }
