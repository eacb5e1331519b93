from __future__ import annotations

import pytest

from crew_attendance.core.enums import MutationKind
from crew_attendance.database.store import RemoteStore
from crew_attendance.offline.model import QueuedMutation
from crew_attendance.offline.replayer import RemoteReplayer

from fakes import RecordingConnection


@pytest.fixture
def conn():
    return RecordingConnection()


@pytest.fixture
def replayer(conn):
    return RemoteReplayer(RemoteStore(conn))


CHECKIN = {"id": "rec-1", "crew_id": "crew-1", "shift_id": "shift-1", "date": "2024-05-10", "status": "active"}


def test_checkin_is_inserted_with_its_record_id(replayer, conn):
    replayer.apply(QueuedMutation(id="q1", kind=MutationKind.CHECKIN, data=CHECKIN))

    (lookup, lookup_params), (insert, insert_params) = conn.statements
    assert lookup == (
        "SELECT `id` FROM `warehouse_checkins` "
        "WHERE `crew_id` = %s AND `shift_id` = %s AND `date` = %s AND `status` = %s LIMIT 1"
    )
    assert lookup_params == ("crew-1", "shift-1", "2024-05-10", "active")
    assert insert.startswith("INSERT INTO `warehouse_checkins` (`id`, `crew_id`, `shift_id`, `date`, `status`)")
    assert insert_params[0] == "rec-1"


def test_checkin_is_dropped_when_the_shift_already_has_an_active_record():
    conn = RecordingConnection(rows=[{"id": "rec-online"}])

    RemoteReplayer(RemoteStore(conn)).apply(QueuedMutation(id="q1", kind=MutationKind.CHECKIN, data=CHECKIN))

    assert len(conn.statements) == 1
    assert conn.statements[0][0].startswith("SELECT")


def test_checkout_updates_the_record(replayer, conn):
    replayer.apply(
        QueuedMutation(id="q2", kind=MutationKind.CHECKOUT, data={"id": "rec-1", "updates": {"check_out_time": "17:00"}})
    )

    sql, params = conn.statements[0]
    assert sql == "UPDATE `warehouse_checkins` SET `check_out_time`=%s WHERE `id` = %s"
    assert params == ("17:00", "rec-1")


def test_timesheet_without_id_is_inserted(replayer, conn):
    replayer.apply(QueuedMutation(id="q3", kind=MutationKind.TIMESHEET, data={"crew_id": "crew-1", "date": "2024-05-10"}))

    assert conn.statements[0][0].startswith("INSERT INTO `timesheet_entries`")


def test_expense_is_inserted(replayer, conn):
    replayer.apply(QueuedMutation(id="q4", kind=MutationKind.EXPENSE, data={"crew_id": "crew-1", "amount": 12.5}))

    assert conn.statements[0][0].startswith("INSERT INTO `expenses`")
