"""Task timer state machine.

Only this module writes a task's timer fields. Every transition runs as one
transaction: lock the task row, check the assignee, validate the move against
TRANSITIONS, fold elapsed time into the total, append a time log row, commit.
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from timesheet.core.errors import (
    InvalidTransition,
    StorageFailure,
    TaskConflict,
    TaskNotFound,
    TimerError,
)
from timesheet.core.permissions import ensure_task_assignee
from timesheet.models.task import Task, TaskStatus
from timesheet.models.task_time_log import TimerAction
from timesheet.models.user import User
from timesheet.services.time_log_service import append_time_log
from timesheet.services.tracker_service import elapsed_seconds, ensure_aware_utc, utcnow

log = structlog.get_logger(__name__)

PENDING = TaskStatus.PENDING.value
IN_PROGRESS = TaskStatus.IN_PROGRESS.value
PAUSED = TaskStatus.PAUSED.value
COMPLETED = TaskStatus.COMPLETED.value

# (current status, action) -> next status. Anything missing is illegal.
TRANSITIONS = {
    (PENDING, TimerAction.START.value): IN_PROGRESS,
    (IN_PROGRESS, TimerAction.PAUSE.value): PAUSED,
    (PAUSED, TimerAction.RESUME.value): IN_PROGRESS,
    (IN_PROGRESS, TimerAction.STOP.value): PAUSED,
    (IN_PROGRESS, TimerAction.COMPLETE.value): COMPLETED,
    (PAUSED, TimerAction.COMPLETE.value): COMPLETED,
    (PENDING, TimerAction.COMPLETE.value): COMPLETED,
}


def next_status(current_status: str, action: str) -> str:
    try:
        return TRANSITIONS[(current_status, action)]
    except KeyError:
        raise InvalidTransition(current_status, action)


def _load_task_for_update(db: Session, task_id: int) -> Optional[Task]:
    return db.query(Task).filter(
        Task.id == task_id
    ).with_for_update().populate_existing().first()


def _apply(task: Task, user: User, target: str, now: datetime) -> int:
    """Mutate the task's timer fields in place. Returns seconds flushed."""
    flushed = 0
    if task.status == IN_PROGRESS:
        flushed = elapsed_seconds(task.active_timer_started_at, now)
        task.total_tracked_seconds = (task.total_tracked_seconds or 0) + flushed
        task.active_timer_started_at = None

    if target == IN_PROGRESS:
        task.active_timer_started_at = now
        if task.started_at is None:
            task.started_at = now
    elif target == PAUSED:
        task.last_paused_at = now
    elif target == COMPLETED:
        task.completed_at = now
        task.completed_by = user.id

    task.status = target
    return flushed


def apply_transition(
    db: Session,
    task_id: int,
    user: User,
    action: str,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Task:
    now = ensure_aware_utc(now) if now is not None else utcnow()
    user_id = user.id

    try:
        task = _load_task_for_update(db, task_id)
        if task is None:
            raise TaskNotFound(task_id)

        ensure_task_assignee(task, user)

        previous = task.status
        target = next_status(previous, action)
        flushed = _apply(task, user, target, now)

        append_time_log(
            db,
            task_id=task.id,
            user_id=user_id,
            action=action,
            occurred_at=now,
            resulting_status=target,
            note=note,
            elapsed_seconds=flushed,
        )
        total = task.total_tracked_seconds
        db.commit()
    except TimerError as exc:
        db.rollback()
        log.warning(
            "task_timer_rejected",
            task_id=task_id,
            user_id=user_id,
            action=action,
            reason=exc.message,
        )
        raise
    except StaleDataError:
        db.rollback()
        log.warning("task_timer_conflict", task_id=task_id, user_id=user_id, action=action)
        raise TaskConflict(task_id)
    except SQLAlchemyError:
        db.rollback()
        log.exception("task_timer_storage_failure", task_id=task_id, action=action)
        raise StorageFailure()

    log.info(
        "task_timer_transition",
        task_id=task_id,
        user_id=user_id,
        action=action,
        from_status=previous,
        to_status=target,
        elapsed_seconds=flushed,
        total_tracked_seconds=total,
    )

    # Already committed; a reload failure is reported on its own.
    try:
        db.refresh(task)
    except SQLAlchemyError:
        log.exception("task_timer_reload_failed", task_id=task_id, action=action)
        raise StorageFailure(f"Task {task_id} was updated but could not be reloaded")
    return task


def start_task(db: Session, task_id: int, user: User, note: Optional[str] = None,
               now: Optional[datetime] = None) -> Task:
    return apply_transition(db, task_id, user, TimerAction.START.value, note, now)


def pause_task(db: Session, task_id: int, user: User, note: Optional[str] = None,
               now: Optional[datetime] = None) -> Task:
    return apply_transition(db, task_id, user, TimerAction.PAUSE.value, note, now)


def resume_task(db: Session, task_id: int, user: User, note: Optional[str] = None,
                now: Optional[datetime] = None) -> Task:
    return apply_transition(db, task_id, user, TimerAction.RESUME.value, note, now)


def stop_task(db: Session, task_id: int, user: User, note: Optional[str] = None,
              now: Optional[datetime] = None) -> Task:
    # Same state change as pause; only the logged action differs.
    return apply_transition(db, task_id, user, TimerAction.STOP.value, note, now)


def complete_task(db: Session, task_id: int, user: User, note: Optional[str] = None,
                  now: Optional[datetime] = None) -> Task:
    return apply_transition(db, task_id, user, TimerAction.COMPLETE.value, note, now)
