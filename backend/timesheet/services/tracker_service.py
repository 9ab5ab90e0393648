import math
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from timesheet.models.task import Task, TaskStatus
from timesheet.schemas.task import TaskOut


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def elapsed_seconds(started_at: Optional[datetime], now: datetime) -> int:
    """Whole seconds between started_at and now, floored and never negative."""
    if started_at is None:
        return 0
    delta = (ensure_aware_utc(now) - ensure_aware_utc(started_at)).total_seconds()
    return max(0, math.floor(delta))


def current_tracked_seconds(task: Task, now: Optional[datetime] = None) -> int:
    total = task.total_tracked_seconds or 0
    if task.status == TaskStatus.IN_PROGRESS.value:
        total += elapsed_seconds(task.active_timer_started_at, now or utcnow())
    return total


def is_overtime(task: Task, now: Optional[datetime] = None) -> bool:
    if not task.estimated_time:
        return False
    estimated_seconds = int(float(task.estimated_time) * 3600)
    if estimated_seconds <= 0:
        return False
    return current_tracked_seconds(task, now) > estimated_seconds


def get_active_task(user_id: int, db: Session) -> Optional[Task]:
    return db.query(Task).filter(
        Task.assigned_to == user_id,
        Task.status == TaskStatus.IN_PROGRESS.value
    ).order_by(desc(Task.active_timer_started_at)).first()


def serialize_task(task: Task, now: Optional[datetime] = None) -> TaskOut:
    now = now or utcnow()
    payload = TaskOut.model_validate(task)
    payload.current_tracked_seconds = current_tracked_seconds(task, now)
    payload.is_overtime = is_overtime(task, now)
    return payload
