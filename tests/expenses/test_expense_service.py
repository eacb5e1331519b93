from __future__ import annotations

import pytest

from crew_attendance.core.enums import MutationKind
from crew_attendance.core.exceptions import NotFoundError, ValidationError
from crew_attendance.database.store import RemoteStore
from crew_attendance.expenses.mysql_expense_repository import MySQLExpenseRepository
from crew_attendance.expenses.service import ExpenseService
from crew_attendance.timesheets.model import CrewEvent

from fakes import CREW_ID, InMemoryExpenses, InMemoryShifts, RecordingConnection, at, make_shift


@pytest.fixture
def expenses_repo():
    return InMemoryExpenses()


@pytest.fixture
def service(expenses_repo, timesheets_repo, offline_queue):
    timesheets_repo.add_event(CrewEvent(id="ev-1", title="Fiera", start_date="2024-05-10"))
    shifts = InMemoryShifts({"shift-1": make_shift(date="2024-05-09")})
    return ExpenseService(expenses_repo, timesheets_repo, shifts, offline=offline_queue)


def test_expense_for_an_event_is_saved(service, expenses_repo):
    result = service.submit(
        CREW_ID,
        amount="18.5",
        description=" Pranzo in fiera ",
        event_id="ev-1",
        expense_date="2024-05-10",
        now=at("20:00"),
    )

    [expense] = service.list(CREW_ID)
    assert result.queued_offline is False
    assert expense.id == result.expense_id
    assert (expense.amount, expense.category, expense.description) == (18.5, "vitto", "Pranzo in fiera")
    assert expense.location == "Posizione non disponibile"
    assert expense.status == "pending"


def test_expense_for_a_warehouse_shift(service):
    service.submit(CREW_ID, amount=9, description="Parcheggio", category="trasporto", warehouse_shift_id="shift-1", now=at("10:00"))

    [expense] = service.list(CREW_ID)
    assert (expense.warehouse_shift_id, expense.event_id, expense.date) == ("shift-1", None, "2024-05-10")


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"amount": 10, "description": "  "}, "Descrizione"),
        ({"amount": 0, "description": "Taxi"}, "importo valido"),
        ({"amount": "dieci", "description": "Taxi"}, "importo valido"),
        ({"amount": 10, "description": "Taxi", "category": "regali"}, "Categoria non valida"),
        ({"amount": 10, "description": "Taxi", "event_id": None}, "Seleziona evento o turno"),
    ],
)
def test_invalid_expenses_are_rejected(service, kwargs, message):
    kwargs.setdefault("event_id", "ev-1")
    with pytest.raises(ValidationError, match=message):
        service.submit(CREW_ID, now=at("20:00"), **kwargs)


def test_expense_older_than_48_hours_is_rejected(service):
    with pytest.raises(ValidationError, match="oltre le 48 ore"):
        service.submit(CREW_ID, amount=10, description="Taxi", event_id="ev-1", now=at("00:30", day="2024-05-12"))


def test_expense_before_the_event_is_rejected(service):
    with pytest.raises(ValidationError, match="oltre le 48 ore"):
        service.submit(CREW_ID, amount=10, description="Taxi", event_id="ev-1", now=at("20:00", day="2024-05-09"))


def test_unknown_event_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.submit(CREW_ID, amount=10, description="Taxi", event_id="ev-9", now=at("20:00"))


def test_offline_expense_is_queued_with_its_id(service, expenses_repo, offline_queue):
    expenses_repo.offline = True

    result = service.submit(CREW_ID, amount=12.5, description="Taxi", event_id="ev-1", now=at("20:00"))

    [item] = offline_queue.pending
    assert result.queued_offline is True
    assert item.kind == MutationKind.EXPENSE
    assert item.data["id"] == result.expense_id
    assert item.data["amount"] == 12.5
    assert expenses_repo.rows == {}


def test_mysql_repository_reads_newest_first():
    conn = RecordingConnection(rows=[{"id": "x1", "crew_id": CREW_ID, "date": "2024-05-10", "amount": "7.00", "category": None}])

    [expense] = MySQLExpenseRepository(RemoteStore(conn)).list_for_crew(CREW_ID)

    sql, params = conn.statements[0]
    assert sql == "SELECT * FROM `expenses` WHERE `crew_id` = %s ORDER BY `date` DESC"
    assert params == (CREW_ID,)
    assert (expense.amount, expense.category, expense.payment_method) == (7.0, "altro", "electronic")
