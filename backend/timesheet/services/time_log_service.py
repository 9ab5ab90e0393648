from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timesheet.core.errors import StorageFailure, TaskNotFound
from timesheet.models.task import Task
from timesheet.models.task_time_log import TaskTimeLog

log = structlog.get_logger(__name__)


def append_time_log(
    db: Session,
    *,
    task_id: int,
    user_id: int,
    action: str,
    occurred_at: datetime,
    resulting_status: str,
    note: Optional[str] = None,
    elapsed_seconds: int = 0,
) -> TaskTimeLog:
    """Stage a log row in the caller's transaction. The caller commits."""
    entry = TaskTimeLog(
        task_id=task_id,
        user_id=user_id,
        action=action,
        occurred_at=occurred_at,
        note=note,
        resulting_status=resulting_status,
        elapsed_seconds=elapsed_seconds,
    )
    db.add(entry)
    return entry


def list_time_logs(db: Session, task_id: int) -> List[TaskTimeLog]:
    try:
        exists = db.query(Task.id).filter(Task.id == task_id).first()
        if not exists:
            raise TaskNotFound(task_id)
        return db.query(TaskTimeLog).filter(
            TaskTimeLog.task_id == task_id
        ).order_by(TaskTimeLog.occurred_at.asc(), TaskTimeLog.id.asc()).all()
    except SQLAlchemyError:
        log.exception("time_log_read_failed", task_id=task_id)
        raise StorageFailure("Could not load time logs")
