"""In-memory repositories and helpers shared by the service tests."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from crew_attendance.attendance.model import WAREHOUSE_TABLE
from crew_attendance.attendance.mysql_attendance_repository import row_to_record
from crew_attendance.common.datetime_utils import LOCAL_TZ
from crew_attendance.core.enums import CheckInStatus, OvertimeStatus, TimesheetStatus
from crew_attendance.core.exceptions import ConnectivityError
from crew_attendance.crew.model import CrewMember, MealBenefits
from crew_attendance.expenses.mysql_expense_repository import row_to_expense
from crew_attendance.location.model import Location
from crew_attendance.overtime.model import OvertimeRequest
from crew_attendance.shifts.model import WarehouseShift
from crew_attendance.timesheets.model import CrewEvent
from crew_attendance.timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from crew_attendance.warehouses.model import Warehouse

CREW_ID = "crew-1"


def at(hhmm: str, day: str = "2024-05-10") -> datetime:
    """Local datetime for a wall-clock time on ``day``."""
    hours, minutes = hhmm.split(":")
    year, month, dom = day.split("-")
    return datetime(int(year), int(month), int(dom), int(hours), int(minutes), tzinfo=LOCAL_TZ)


def location(lat: float = 45.4642, lon: float = 9.19, accuracy: int = 8) -> Location:
    return Location(latitude=lat, longitude=lon, address="Via Roma 1, Milano", accuracy=accuracy, timestamp=at("09:00"))


class InMemoryAttendance:
    """Rows kept as plain dicts per table, read back through the real row mapper."""

    def __init__(self):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.offline = False

    def _rows(self, table: str) -> Dict[str, Dict[str, Any]]:
        return self.tables.setdefault(table, {})

    def _check(self) -> None:
        if self.offline:
            raise ConnectivityError("Database non raggiungibile")

    def get(self, record_id, *, table=WAREHOUSE_TABLE):
        self._check()
        row = self._rows(table).get(record_id)
        return row_to_record(row, table) if row else None

    def list_open_for_crew(self, crew_id, dates, *, table=WAREHOUSE_TABLE):
        self._check()
        return [
            row_to_record(r, table)
            for r in self._rows(table).values()
            if r["crew_id"] == crew_id
            and r["date"] in dates
            and r.get("status") in (CheckInStatus.ACTIVE.value, CheckInStatus.CHECKED_IN.value)
            and not r.get("check_out_time")
        ]

    def list_for_crew_on(self, crew_id, work_date, *, table=WAREHOUSE_TABLE):
        return [row_to_record(r, table) for r in self._rows(table).values() if r["crew_id"] == crew_id and r["date"] == work_date]

    def find_active_for_shift(self, *, crew_id, shift_id, work_date):
        self._check()
        for r in self._rows(WAREHOUSE_TABLE).values():
            if (r["crew_id"], r.get("shift_id"), r["date"], r.get("status")) == (crew_id, shift_id, work_date, "active"):
                return row_to_record(r)
        return None

    def list_between(self, *, crew_id, start_date, end_date):
        rows = [r for r in self._rows(WAREHOUSE_TABLE).values() if r["crew_id"] == crew_id and start_date <= r["date"] <= end_date]
        rows.sort(key=lambda r: r["date"], reverse=True)
        return [row_to_record(r) for r in rows]

    def list_completed(self, crew_id, *, limit=100, table=WAREHOUSE_TABLE):
        rows = [r for r in self._rows(table).values() if r["crew_id"] == crew_id and r.get("status") == "completed"]
        rows.sort(key=lambda r: r["date"], reverse=True)
        return [row_to_record(r, table) for r in rows[:limit]]

    def insert(self, row, *, table=WAREHOUSE_TABLE):
        self._check()
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        self._rows(table)[row["id"]] = row
        return row_to_record(row, table)

    def update(self, record_id, values, *, table=WAREHOUSE_TABLE):
        self._check()
        row = self._rows(table).get(record_id)
        if row is None:
            return False
        row.update(values)
        return True

    def add(self, table=WAREHOUSE_TABLE, **row) -> str:
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("crew_id", CREW_ID)
        row.setdefault("status", "active")
        self._rows(table)[row["id"]] = row
        return row["id"]

    def row(self, record_id, table=WAREHOUSE_TABLE) -> Dict[str, Any]:
        return self._rows(table)[record_id]


class InMemoryTimesheets:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.events: Dict[str, CrewEvent] = {}
        self.assignments: Dict[str, List[str]] = {}
        self.offline = False

    def _check(self) -> None:
        if self.offline:
            raise ConnectivityError("Database non raggiungibile")

    def _entry(self, row):
        event = self.events.get(row.get("event_id") or "")
        return MySQLTimesheetRepository._row_to_entry(row, event.title if event else None)

    def get(self, entry_id):
        self._check()
        row = self.rows.get(entry_id)
        return self._entry(row) if row else None

    def list_open_for_crew(self, crew_id, work_date):
        self._check()
        return [
            self._entry(r)
            for r in self.rows.values()
            if r["crew_id"] == crew_id and r["date"] == work_date and r.get("status") == "draft" and not r.get("end_time")
        ]

    def list_for_crew(self, crew_id, *, start_date=None, end_date=None):
        rows = [r for r in self.rows.values() if r["crew_id"] == crew_id]
        if start_date:
            rows = [r for r in rows if r["date"] >= start_date]
        if end_date:
            rows = [r for r in rows if r["date"] <= end_date]
        return [self._entry(r) for r in sorted(rows, key=lambda r: r["date"], reverse=True)]

    def insert(self, row):
        self._check()
        row = {k: (v.value if hasattr(v, "value") else v) for k, v in row.items()}
        row.setdefault("id", str(uuid.uuid4()))
        self.rows[row["id"]] = row
        return self._entry(row)

    def update(self, entry_id, values):
        self._check()
        row = self.rows.get(entry_id)
        if row is None:
            return False
        row.update({k: (v.value if hasattr(v, "value") else v) for k, v in values.items()})
        return True

    def delete(self, entry_id):
        return self.rows.pop(entry_id, None) is not None

    def list_events_for_crew_on(self, crew_id, work_date):
        return [
            e
            for e in self.events.values()
            if crew_id in self.assignments.get(e.id, []) and e.start_date <= work_date <= (e.end_date or e.start_date)
        ]

    def get_event_for_crew(self, crew_id, event_id):
        event = self.events.get(event_id)
        if event is None or crew_id not in self.assignments.get(event_id, []):
            return None
        return event

    def add_event(self, event: CrewEvent, crew_id: str = CREW_ID) -> CrewEvent:
        self.events[event.id] = event
        self.assignments.setdefault(event.id, []).append(crew_id)
        return event

    def add(self, **row) -> str:
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("crew_id", CREW_ID)
        row.setdefault("status", TimesheetStatus.DRAFT.value)
        self.rows[row["id"]] = row
        return row["id"]


@dataclass
class InMemoryShifts:
    shifts: Dict[str, WarehouseShift] = field(default_factory=dict)

    def list_upcoming_for_crew(self, crew_id, from_date):
        return [s for s in self.shifts.values() if s.crew_id == crew_id and s.shift_date >= from_date]

    def get_by_id(self, shift_id):
        return self.shifts.get(shift_id)


@dataclass
class InMemoryWarehouses:
    warehouses: List[Warehouse] = field(default_factory=list)

    def list_all(self):
        return list(self.warehouses)

    def get_by_id(self, warehouse_id):
        return next((w for w in self.warehouses if w.id == warehouse_id), None)


@dataclass
class InMemoryCrew:
    members: Dict[str, CrewMember] = field(default_factory=dict)
    benefits: Dict[str, MealBenefits] = field(default_factory=dict)

    def get_by_id(self, crew_id):
        return self.members.get(crew_id)

    def get_by_email(self, email):
        return next((m for m in self.members.values() if m.email == email), None)

    def get_meal_benefits(self, crew_id):
        return self.benefits.get(crew_id)


class InMemoryOvertime:
    def __init__(self):
        self.rows: List[OvertimeRequest] = []

    def list_for_crew(self, crew_id):
        return [r for r in self.rows if r.crew_id == crew_id]

    def find_for_attendance(self, attendance_id):
        return next((r for r in self.rows if r.attendance_id == attendance_id), None)

    def find_for_timesheet_entry(self, entry_id):
        return next((r for r in self.rows if r.timesheet_entry_id == entry_id), None)

    def insert(self, row):
        row = dict(row)
        status = OvertimeStatus(row.pop("status", OvertimeStatus.PENDING))
        saved = OvertimeRequest(id=str(uuid.uuid4()), status=status, **row)
        self.rows.append(saved)
        return saved


class InMemoryExpenses:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.offline = False

    def list_for_crew(self, crew_id):
        rows = [r for r in self.rows.values() if r["crew_id"] == crew_id]
        return [row_to_expense(r) for r in sorted(rows, key=lambda r: r["date"], reverse=True)]

    def insert(self, row):
        if self.offline:
            raise ConnectivityError("Database non raggiungibile")
        row = dict(row)
        row.setdefault("id", str(uuid.uuid4()))
        self.rows[row["id"]] = row
        return row_to_expense(row)


class MemoryStorage:
    def __init__(self):
        self.slots: Dict[str, str] = {}

    def get_item(self, key) -> Optional[str]:
        return self.slots.get(key)

    def set_item(self, key, value) -> None:
        self.slots[key] = value

    def remove_item(self, key) -> None:
        self.slots.pop(key, None)


class RecordingReplayer:
    """Applies items unless their payload says ``fail``."""

    def __init__(self):
        self.applied: List[str] = []

    def apply(self, item) -> None:
        if item.data.get("fail"):
            raise ConnectivityError("ancora offline")
        self.applied.append(item.id)


WAREHOUSE = Warehouse(
    id="wh-1",
    name="Magazzino Nord",
    address="Via Roma 1, Milano",
    latitude=45.4642,
    longitude=9.19,
    backup_code="NORD01",
    qr_code_value="WH-NORD01",
)


def make_shift(shift_id="shift-1", *, date="2024-05-10", start="09:00", end="17:00", has_lunch_break=True) -> WarehouseShift:
    return WarehouseShift(
        shift_id=shift_id,
        crew_id=CREW_ID,
        warehouse_id=WAREHOUSE.id,
        warehouse_name=WAREHOUSE.name,
        shift_name="Giornata",
        shift_date=date,
        start_time=start,
        end_time=end,
        has_lunch_break=has_lunch_break,
    )



class RecordingCursor:
    def __init__(self, log: List[tuple], rows: List[Dict[str, Any]]):
        self._log = log
        self._rows = rows
        self.rowcount = len(rows) or 1

    def execute(self, sql, params=()):
        self._log.append((sql, tuple(params)))

    def callproc(self, name, args=()):
        self._log.append((f"CALL {name}", tuple(args)))

    def stored_results(self):
        return iter(())

    def fetchall(self):
        return list(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def close(self):
        pass


class RecordingConnection:
    """Stands in for ``DatabaseConnection``: every statement lands in ``statements``."""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.statements: List[tuple] = []
        self.rows = rows or []
        self.commits = 0

    def connect(self):
        return self

    def cursor(self, dictionary=True):
        return RecordingCursor(self.statements, self.rows)

    def commit(self):
        self.commits += 1

    def rollback(self):
        pass

    def close(self):
        pass
