from typing import Callable, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from timesheet.core.dependencies import TASK_ROLES, get_current_user, require_roles
from timesheet.database.session import get_db
from timesheet.models.user import User
from timesheet.schemas.task import TaskResponse, TaskTimeLogOut, TimerActionRequest
from timesheet.services import timer_service
from timesheet.services.time_log_service import list_time_logs
from timesheet.services.tracker_service import serialize_task

router = APIRouter(
    prefix="/tasks",
    tags=["Task Timer"],
    dependencies=[Depends(require_roles(*TASK_ROLES))],
)


def _run_transition(
    transition: Callable,
    message: str,
    task_id: int,
    payload: Optional[TimerActionRequest],
    db: Session,
    current_user: User,
):
    note = payload.note if payload else None
    task = transition(db, task_id, current_user, note=note)
    return {"message": message, "task": serialize_task(task)}


# =====================================
# START
# =====================================
@router.post("/{task_id}/start", response_model=TaskResponse)
def start_task(
    task_id: int,
    payload: Optional[TimerActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _run_transition(
        timer_service.start_task, "Task started successfully", task_id, payload, db, current_user
    )


# =====================================
# PAUSE
# =====================================
@router.post("/{task_id}/pause", response_model=TaskResponse)
def pause_task(
    task_id: int,
    payload: Optional[TimerActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _run_transition(
        timer_service.pause_task, "Task paused", task_id, payload, db, current_user
    )


# =====================================
# RESUME
# =====================================
@router.post("/{task_id}/resume", response_model=TaskResponse)
def resume_task(
    task_id: int,
    payload: Optional[TimerActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _run_transition(
        timer_service.resume_task, "Task resumed", task_id, payload, db, current_user
    )


# =====================================
# STOP
# =====================================
@router.post("/{task_id}/stop", response_model=TaskResponse)
def stop_task(
    task_id: int,
    payload: Optional[TimerActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _run_transition(
        timer_service.stop_task, "Task stopped successfully", task_id, payload, db, current_user
    )


# =====================================
# COMPLETE
# =====================================
@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    task_id: int,
    payload: Optional[TimerActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _run_transition(
        timer_service.complete_task, "Task marked as completed", task_id, payload, db, current_user
    )


# =====================================
# TIME LOG
# =====================================
@router.get("/{task_id}/logs", response_model=List[TaskTimeLogOut])
def get_task_logs(
    task_id: int,
    db: Session = Depends(get_db),
):
    return list_time_logs(db, task_id)
