from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_COMPANY_MEAL_COST, DEFAULT_MEAL_VOUCHER_VALUE


@dataclass(frozen=True)
class CrewMember:
    """Crew member who can log in and check in."""

    id: str
    email: str
    full_name: str
    password_hash: str
    is_active: bool = True
    overtime_benefit: bool = False
    overtime_hourly_rate: Optional[float] = None
    extra_shift_hourly_rate: Optional[float] = None


@dataclass(frozen=True)
class MealBenefits:
    voucher_enabled: bool = False
    voucher_value: float = DEFAULT_MEAL_VOUCHER_VALUE
    company_meal_cost: float = DEFAULT_COMPANY_MEAL_COST

    def to_dict(self) -> dict:
        return {
            "voucher_enabled": self.voucher_enabled,
            "voucher_value": self.voucher_value,
            "company_meal_cost": self.company_meal_cost,
        }
