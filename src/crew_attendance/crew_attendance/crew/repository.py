from __future__ import annotations

from typing import Optional, Protocol

from .model import CrewMember, MealBenefits


class CrewRepository(Protocol):
    def get_by_id(self, crew_id: str) -> Optional[CrewMember]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[CrewMember]:
        raise NotImplementedError

    def get_meal_benefits(self, crew_id: str) -> Optional[MealBenefits]:
        """Active benefits row, or None when not configured."""

        raise NotImplementedError
