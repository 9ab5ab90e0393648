from datetime import datetime, timedelta, timezone

from conftest import T0
from timesheet.services.tracker_service import (
    current_tracked_seconds,
    elapsed_seconds,
    ensure_aware_utc,
    get_active_task,
    is_overtime,
    serialize_task,
)


def test_ensure_aware_utc_treats_naive_as_utc():
    naive = datetime(2024, 3, 4, 9, 0, 0)
    assert ensure_aware_utc(naive) == T0

    ist = timezone(timedelta(hours=5, minutes=30))
    assert ensure_aware_utc(datetime(2024, 3, 4, 14, 30, tzinfo=ist)) == T0


def test_elapsed_seconds():
    assert elapsed_seconds(None, T0) == 0
    assert elapsed_seconds(T0, T0 + timedelta(seconds=90, microseconds=500000)) == 90
    assert elapsed_seconds(T0, T0 - timedelta(minutes=5)) == 0
    # Naive start from SQLite against an aware clock
    assert elapsed_seconds(T0.replace(tzinfo=None), T0 + timedelta(seconds=3)) == 3


def test_current_tracked_seconds_includes_running_interval(make_task):
    running = make_task(status="in_progress", total_tracked_seconds=100, active_timer_started_at=T0)
    paused = make_task(status="paused", total_tracked_seconds=100)

    assert current_tracked_seconds(running, T0 + timedelta(seconds=25)) == 125
    assert current_tracked_seconds(paused, T0 + timedelta(seconds=25)) == 100


def test_is_overtime(make_task):
    half_hour = make_task(estimated_time=0.5, status="paused", total_tracked_seconds=1800)
    over = make_task(estimated_time=0.5, status="in_progress",
                     total_tracked_seconds=1800, active_timer_started_at=T0)
    no_estimate = make_task(estimated_time=0, status="paused", total_tracked_seconds=99999)

    assert is_overtime(half_hour, T0) is False
    assert is_overtime(over, T0 + timedelta(seconds=1)) is True
    assert is_overtime(no_estimate, T0) is False


def test_serialize_task_adds_derived_fields(make_task):
    task = make_task(status="in_progress", total_tracked_seconds=60, active_timer_started_at=T0)

    out = serialize_task(task, T0 + timedelta(seconds=40))

    assert out.current_tracked_seconds == 100
    assert out.total_tracked_seconds == 60
    assert out.project_name == "Payroll revamp"
    assert out.assignee_name == "Asha Developer"
    assert out.is_overtime is False


def test_get_active_task(db, make_task, assignee):
    assert get_active_task(assignee.id, db) is None

    make_task(status="paused")
    running = make_task(status="in_progress", active_timer_started_at=T0)

    assert get_active_task(assignee.id, db).id == running.id
