from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.periodic import PeriodicTask
from .core.constants import AUTO_CHECKOUT_INTERVAL_SECONDS, EARLY_CHECKIN_MINUTES
from .crew.mysql_crew_repository import MySQLCrewRepository
from .crew.service import AuthService, CrewService
from .database.connection import DBConfig, DatabaseConnection
from .database.store import RemoteStore
from .expenses.mysql_expense_repository import MySQLExpenseRepository
from .expenses.service import ExpenseService
from .location.geocoding import DEFAULT_GEOCODER_URL, DEFAULT_USER_AGENT, NominatimGeocoder
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .offline.queue import OfflineQueue
from .offline.replayer import RemoteReplayer
from .offline.storage import JsonFileStorage
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .overtime.service import OvertimeService
from .qr.scanner import ScanGateRegistry
from .reports.service import MonthlyReportService
from .sessions.registry import SessionRegistry
from .shifts.factory import ShiftTimingStrategyFactory
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.service import TimesheetService
from .warehouses.mysql_warehouse_repository import MySQLWarehouseRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    store: RemoteStore

    crew_repo: MySQLCrewRepository
    warehouses_repo: MySQLWarehouseRepository
    shifts_repo: MySQLShiftRepository
    attendance_repo: MySQLAttendanceRepository
    timesheets_repo: MySQLTimesheetRepository
    overtime_repo: MySQLOvertimeRepository
    notifications_repo: MySQLNotificationRepository
    expenses_repo: MySQLExpenseRepository

    offline_queue: OfflineQueue
    geocoder: NominatimGeocoder
    sessions: SessionRegistry
    scan_gates: ScanGateRegistry

    auth_service: AuthService
    crew_service: CrewService
    attendance_service: AttendanceService
    timesheet_service: TimesheetService
    overtime_service: OvertimeService
    report_service: MonthlyReportService
    notification_service: NotificationService
    expense_service: ExpenseService

    auto_checkout_task: PeriodicTask


def build_container(
    *,
    db_config: dict,
    offline_storage_path: str = "instance/offline_queue.json",
    geocoder_url: str = DEFAULT_GEOCODER_URL,
    geocoder_user_agent: str = DEFAULT_USER_AGENT,
    auto_checkout_interval: float = AUTO_CHECKOUT_INTERVAL_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    store = RemoteStore(conn)

    crew_repo = MySQLCrewRepository(store)
    warehouses_repo = MySQLWarehouseRepository(store)
    shifts_repo = MySQLShiftRepository(conn)
    attendance_repo = MySQLAttendanceRepository(store)
    timesheets_repo = MySQLTimesheetRepository(store, conn)
    overtime_repo = MySQLOvertimeRepository(store)
    notifications_repo = MySQLNotificationRepository(store)
    expenses_repo = MySQLExpenseRepository(store)

    offline_queue = OfflineQueue(JsonFileStorage(offline_storage_path), RemoteReplayer(store))
    geocoder = NominatimGeocoder(geocoder_url, user_agent=geocoder_user_agent)
    sessions = SessionRegistry(attendance_repo, timesheets_repo, warehouses_repo, offline=offline_queue)

    auth_service = AuthService(crew_repo)
    crew_service = CrewService(crew_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        shifts_repo,
        warehouses_repo,
        crew_service,
        sessions,
        offline=offline_queue,
        strategy_factory=ShiftTimingStrategyFactory(),
        grace_minutes=EARLY_CHECKIN_MINUTES,
    )
    timesheet_service = TimesheetService(timesheets_repo, sessions, offline=offline_queue)
    overtime_service = OvertimeService(overtime_repo, attendance_repo, timesheets_repo, crew_service)
    report_service = MonthlyReportService(attendance_repo, timesheets_repo, overtime_repo, sessions)
    notification_service = NotificationService(notifications_repo)
    expense_service = ExpenseService(expenses_repo, timesheets_repo, shifts_repo, offline=offline_queue)

    auto_checkout_task = PeriodicTask(
        auto_checkout_interval,
        attendance_service.auto_checkout_sweep,
        name="auto-checkout",
    )

    return Container(
        conn=conn,
        store=store,
        crew_repo=crew_repo,
        warehouses_repo=warehouses_repo,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        timesheets_repo=timesheets_repo,
        overtime_repo=overtime_repo,
        notifications_repo=notifications_repo,
        expenses_repo=expenses_repo,
        offline_queue=offline_queue,
        geocoder=geocoder,
        sessions=sessions,
        scan_gates=ScanGateRegistry(),
        auth_service=auth_service,
        crew_service=crew_service,
        attendance_service=attendance_service,
        timesheet_service=timesheet_service,
        overtime_service=overtime_service,
        report_service=report_service,
        notification_service=notification_service,
        expense_service=expense_service,
        auto_checkout_task=auto_checkout_task,
    )
