from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import mysql.connector
from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.exceptions import AuthenticationError, DomainError
from .model import CrewMember, MealBenefits
from .repository import CrewRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionCrew:
    """What we store into Flask session after login."""

    crew_id: str
    full_name: str
    email: str


class AuthService:
    """Use case: authenticate a crew member (login)."""

    def __init__(self, crew: CrewRepository):
        self._crew = crew

    def authenticate(self, email: str, password: str) -> SessionCrew:
        email = require_non_empty(email, "Email").lower()
        member = self._crew.get_by_email(email)
        if not member or not member.is_active:
            raise AuthenticationError("Email o password non corretti")

        try:
            ok = check_password_hash(member.password_hash, password or "")
        except ValueError:
            # Placeholder or corrupted hash in the table
            ok = False

        if not ok:
            raise AuthenticationError("Email o password non corretti")

        return SessionCrew(crew_id=member.id, full_name=member.full_name, email=member.email)


class CrewService:
    def __init__(self, crew: CrewRepository):
        self._crew = crew

    def get(self, crew_id: str) -> Optional[CrewMember]:
        return self._crew.get_by_id(crew_id)

    def meal_benefits_for(self, crew_id: str) -> MealBenefits:
        """Configured benefits, or the defaults when missing or unreadable."""
        try:
            benefits = self._crew.get_meal_benefits(crew_id)
        except (DomainError, mysql.connector.Error):
            logger.warning("Meal benefits unavailable for crew %s, using defaults", crew_id)
            return MealBenefits()
        return benefits or MealBenefits()

    def overtime_rate_for(self, crew_id: str) -> Optional[float]:
        """Hourly overtime rate when the crew member is authorised, else None."""
        member = self._crew.get_by_id(crew_id)
        if not member or not member.overtime_benefit or member.overtime_hourly_rate is None:
            return None
        return member.overtime_hourly_rate

    def extra_shift_rate_for(self, crew_id: str) -> float:
        member = self._crew.get_by_id(crew_id)
        if not member or member.extra_shift_hourly_rate is None:
            return 0.0
        return member.extra_shift_hourly_rate
