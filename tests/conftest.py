from __future__ import annotations

import pytest

from crew_attendance.crew.model import CrewMember
from crew_attendance.crew.service import CrewService
from crew_attendance.offline.queue import OfflineQueue
from crew_attendance.sessions.registry import SessionRegistry

from fakes import (
    CREW_ID,
    WAREHOUSE,
    InMemoryAttendance,
    InMemoryCrew,
    InMemoryTimesheets,
    InMemoryWarehouses,
    MemoryStorage,
    RecordingReplayer,
)


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def timesheets_repo():
    return InMemoryTimesheets()


@pytest.fixture
def warehouses_repo():
    return InMemoryWarehouses([WAREHOUSE])


@pytest.fixture
def crew_repo():
    member = CrewMember(
        id=CREW_ID,
        email="mario@example.com",
        full_name="Mario Rossi",
        password_hash="",
        overtime_benefit=True,
        overtime_hourly_rate=15.0,
        extra_shift_hourly_rate=12.0,
    )
    return InMemoryCrew(members={CREW_ID: member})


@pytest.fixture
def crew_service(crew_repo):
    return CrewService(crew_repo)


@pytest.fixture
def offline_queue():
    # Offline, so enqueued items stay put until the test replays them.
    return OfflineQueue(MemoryStorage(), RecordingReplayer(), is_online=False)


@pytest.fixture
def sessions(attendance_repo, timesheets_repo, warehouses_repo, offline_queue):
    registry = SessionRegistry(attendance_repo, timesheets_repo, warehouses_repo, offline=offline_queue)
    yield registry
    for service in registry.all():
        service.ticker.reset()
