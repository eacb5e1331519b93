from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, List, Optional

from ..common.datetime_utils import now_local, parse_iso_date, to_local, today_string
from ..common.validators import require_non_empty
from ..core.constants import EXPENSE_CATEGORIES, EXPENSE_SUBMIT_WINDOW_HOURS
from ..core.enums import MutationKind
from ..core.exceptions import ConnectivityError, NotFoundError, ValidationError
from ..offline.queue import OfflineQueue
from ..shifts.repository import ShiftRepository
from ..timesheets.repository import TimesheetRepository
from .model import Expense
from .repository import ExpenseRepository

logger = logging.getLogger(__name__)

NO_LOCATION = "Posizione non disponibile"


@dataclass(frozen=True)
class ExpenseResult:
    expense_id: str
    queued_offline: bool = False

    def to_dict(self) -> dict:
        return {"expense_id": self.expense_id, "queued_offline": self.queued_offline}


def _amount(value: Any) -> float:
    try:
        amount = round(float(value), 2)
    except (TypeError, ValueError):
        raise ValidationError("Inserisci un importo valido") from None
    if amount <= 0:
        raise ValidationError("Inserisci un importo valido")
    return amount


class ExpenseService:
    """Expense claims for an event or warehouse shift worked in the last 48 hours."""

    def __init__(
        self,
        expenses: ExpenseRepository,
        timesheets: TimesheetRepository,
        shifts: ShiftRepository,
        *,
        offline: Optional[OfflineQueue] = None,
    ):
        self._expenses = expenses
        self._timesheets = timesheets
        self._shifts = shifts
        self._offline = offline

    def list(self, crew_id: str) -> List[Expense]:
        return list(self._expenses.list_for_crew(crew_id))

    def _work_date(self, crew_id: str, event_id: Optional[str], shift_id: Optional[str]) -> str:
        if event_id:
            event = self._timesheets.get_event_for_crew(crew_id, event_id)
            if event is None:
                raise NotFoundError("Evento non trovato")
            return event.start_date[:10]
        if shift_id:
            shift = self._shifts.get_by_id(shift_id)
            if shift is None or shift.crew_id != crew_id:
                raise NotFoundError("Turno non trovato")
            return shift.shift_date[:10]
        raise ValidationError("Seleziona evento o turno valido (entro 48 ore)")

    def submit(
        self,
        crew_id: str,
        *,
        amount: Any,
        description: Optional[str],
        category: str = "vitto",
        event_id: Optional[str] = None,
        warehouse_shift_id: Optional[str] = None,
        expense_date: Optional[str] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
        payment_method: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ExpenseResult:
        description = require_non_empty(description or "", "Descrizione")
        value = _amount(amount)
        if category not in EXPENSE_CATEGORIES:
            raise ValidationError(f"Categoria non valida: {category}")

        now = to_local(now or now_local())
        work_date = self._work_date(crew_id, event_id, warehouse_shift_id)
        worked = datetime.combine(parse_iso_date(work_date), datetime.min.time(), tzinfo=now.tzinfo)
        if not timedelta(0) <= now - worked <= timedelta(hours=EXPENSE_SUBMIT_WINDOW_HOURS):
            raise ValidationError("Evento/Turno non valido o oltre le 48 ore")

        row = {
            "id": str(uuid.uuid4()),
            "crew_id": crew_id,
            "event_id": event_id or None,
            "warehouse_shift_id": None if event_id else warehouse_shift_id,
            "date": (expense_date or "")[:10] or today_string(now),
            "amount": value,
            "category": category,
            "description": description,
            "location": (location or "").strip() or NO_LOCATION,
            "notes": (notes or "").strip() or None,
            "payment_method": payment_method or "electronic",
            "status": "pending",
        }
        try:
            saved = self._expenses.insert(row)
        except ConnectivityError:
            if self._offline is None:
                raise
            queued = self._offline.enqueue(MutationKind.EXPENSE, row)
            logger.warning("Expense %s saved offline (%s)", row["id"], queued.id)
            return ExpenseResult(row["id"], queued_offline=True)

        logger.info("Crew %s submitted expense %s (%.2f %s)", crew_id, saved.id, value, category)
        return ExpenseResult(saved.id)
