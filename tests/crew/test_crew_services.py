from __future__ import annotations

from dataclasses import replace

import pytest
from werkzeug.security import generate_password_hash

from crew_attendance.core.exceptions import AuthenticationError, ConnectivityError, ValidationError
from crew_attendance.crew.model import MealBenefits
from crew_attendance.crew.service import AuthService, CrewService

from fakes import CREW_ID


@pytest.fixture
def auth(crew_repo):
    member = crew_repo.members[CREW_ID]
    crew_repo.members[CREW_ID] = replace(member, password_hash=generate_password_hash("segreta"))
    return AuthService(crew_repo)


def test_login_is_case_insensitive_on_email(auth):
    session = auth.authenticate("  Mario@Example.com ", "segreta")

    assert (session.crew_id, session.full_name) == (CREW_ID, "Mario Rossi")


def test_wrong_password_raises(auth):
    with pytest.raises(AuthenticationError):
        auth.authenticate("mario@example.com", "sbagliata")


def test_inactive_member_cannot_log_in(auth, crew_repo):
    crew_repo.members[CREW_ID] = replace(crew_repo.members[CREW_ID], is_active=False)

    with pytest.raises(AuthenticationError):
        auth.authenticate("mario@example.com", "segreta")


def test_placeholder_hash_is_rejected(crew_repo):
    crew_repo.members[CREW_ID] = replace(crew_repo.members[CREW_ID], password_hash="changeme")

    with pytest.raises(AuthenticationError):
        AuthService(crew_repo).authenticate("mario@example.com", "changeme")


def test_email_is_required(auth):
    with pytest.raises(ValidationError):
        auth.authenticate("", "segreta")


def test_meal_benefits_fall_back_to_defaults(crew_repo):
    class Unreachable:
        def get_meal_benefits(self, crew_id):
            raise ConnectivityError("Database non raggiungibile")

    assert CrewService(crew_repo).meal_benefits_for(CREW_ID) == MealBenefits()
    assert CrewService(Unreachable()).meal_benefits_for(CREW_ID) == MealBenefits()


def test_rates(crew_service, crew_repo):
    assert crew_service.overtime_rate_for(CREW_ID) == 15.0
    assert crew_service.extra_shift_rate_for(CREW_ID) == 12.0
    assert crew_service.overtime_rate_for("nobody") is None
    assert crew_service.extra_shift_rate_for("nobody") == 0.0
