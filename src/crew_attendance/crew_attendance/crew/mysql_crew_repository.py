from __future__ import annotations

from typing import Optional

from ..core.constants import DEFAULT_COMPANY_MEAL_COST, DEFAULT_MEAL_VOUCHER_VALUE
from ..database.store import RemoteStore
from .model import CrewMember, MealBenefits
from .repository import CrewRepository


class MySQLCrewRepository(CrewRepository):
    def __init__(self, store: RemoteStore):
        self._store = store

    @staticmethod
    def _row_to_member(r: dict) -> CrewMember:
        def rate(key: str) -> Optional[float]:
            return float(r[key]) if r.get(key) is not None else None

        return CrewMember(
            id=str(r["id"]),
            email=r["email"],
            full_name=r.get("full_name") or r["email"],
            password_hash=r.get("password_hash") or "",
            is_active=bool(r.get("is_active", 1)),
            overtime_benefit=bool(r.get("overtime_benefit") or 0),
            overtime_hourly_rate=rate("overtime_hourly_rate"),
            extra_shift_hourly_rate=rate("extra_shift_hourly_rate"),
        )

    def get_by_id(self, crew_id: str) -> Optional[CrewMember]:
        r = self._store.table("crew_members").select().eq("id", crew_id).maybe_single()
        return self._row_to_member(r) if r else None

    def get_by_email(self, email: str) -> Optional[CrewMember]:
        r = self._store.table("crew_members").select().eq("email", email).maybe_single()
        return self._row_to_member(r) if r else None

    def get_meal_benefits(self, crew_id: str) -> Optional[MealBenefits]:
        r = (
            self._store.table("employee_meal_benefits")
            .select()
            .eq("crew_id", crew_id)
            .eq("active", 1)
            .maybe_single()
        )
        if not r:
            return None
        return MealBenefits(
            voucher_enabled=bool(r.get("voucher_enabled")),
            voucher_value=float(r.get("voucher_value") or DEFAULT_MEAL_VOUCHER_VALUE),
            company_meal_cost=float(r.get("company_meal_cost") or DEFAULT_COMPANY_MEAL_COST),
        )
