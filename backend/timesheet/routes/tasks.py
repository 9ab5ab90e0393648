from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy import desc
from typing import List, Optional
from datetime import datetime, timezone

import structlog

from timesheet.database.session import get_db
from timesheet.models.task import Task, TaskStatus, AcceptanceStatus
from timesheet.schemas.task import (
    TaskCreate, TaskOut, TaskUpdate, TaskRejectRequest,
    TaskResponse, MessageResponse, ActiveTaskOut,
    TaskStatusEnum, AcceptanceStatusEnum
)
from timesheet.core.dependencies import TASK_ROLES, get_current_user, require_roles
from timesheet.core.permissions import is_task_assignee
from timesheet.core.validation import (
    require_active_user, require_non_empty_text, require_project_exists
)
from timesheet.models.user import User
from timesheet.services.tracker_service import (
    current_tracked_seconds, get_active_task, serialize_task, utcnow
)

router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"],
    dependencies=[Depends(require_roles(*TASK_ROLES))],
)

log = structlog.get_logger(__name__)

# Statuses a task may be cancelled from. A running timer has to be paused first.
CANCELLABLE_STATUSES = {TaskStatus.PENDING.value, TaskStatus.PAUSED.value}
# A running timer belongs to whoever started it.
REASSIGNABLE_STATUSES = {TaskStatus.PENDING.value, TaskStatus.PAUSED.value}


def _get_task_or_404(task_id: int, db: Session) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _commit_or_conflict(task_id: int, db: Session) -> None:
    # A timer transition bumped the version after this request read the task
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        log.warning("task_write_conflict", task_id=task_id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Task {task_id} was modified concurrently, please retry"
        )


def _serialize_all(tasks: List[Task]) -> List[TaskOut]:
    now = utcnow()
    return [serialize_task(task, now) for task in tasks]


# =====================================
# LIST TASKS
# =====================================
@router.get("", response_model=List[TaskOut])
def get_tasks(
    project_id: Optional[int] = Query(None),
    assigned_to: Optional[int] = Query(None),
    status: Optional[TaskStatusEnum] = Query(None),
    db: Session = Depends(get_db)
):
    query = db.query(Task)

    if project_id is not None:
        query = query.filter(Task.project_id == project_id)
    if assigned_to is not None:
        query = query.filter(Task.assigned_to == assigned_to)
    if status is not None:
        query = query.filter(Task.status == status.value)

    tasks = query.order_by(desc(Task.created_at), desc(Task.id)).all()
    return _serialize_all(tasks)


# =====================================
# MY TASKS
# =====================================
@router.get("/my-tasks", response_model=List[TaskOut])
def get_my_tasks(
    status: Optional[TaskStatusEnum] = Query(None),
    acceptance_status: Optional[AcceptanceStatusEnum] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    query = db.query(Task).filter(Task.assigned_to == current_user.id)

    if status is not None:
        query = query.filter(Task.status == status.value)
    if acceptance_status is not None:
        query = query.filter(Task.acceptance_status == acceptance_status.value)

    tasks = query.order_by(desc(Task.created_at), desc(Task.id)).all()
    return _serialize_all(tasks)


# =====================================
# ACTIVE TASK
# =====================================
@router.get("/active", response_model=Optional[ActiveTaskOut])
def get_my_active_task(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = get_active_task(current_user.id, db)
    if not task:
        return None

    return {
        "id": task.id,
        "name": task.name,
        "status": task.status,
        "active_timer_started_at": task.active_timer_started_at,
        "total_seconds": current_tracked_seconds(task)
    }


# =====================================
# TASKS BY PROJECT
# =====================================
@router.get("/project/{project_id}", response_model=List[TaskOut])
def get_tasks_by_project(
    project_id: int,
    db: Session = Depends(get_db)
):
    tasks = db.query(Task).filter(
        Task.project_id == project_id
    ).order_by(desc(Task.created_at), desc(Task.id)).all()
    return _serialize_all(tasks)


# =====================================
# GET TASK
# =====================================
@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: int,
    db: Session = Depends(get_db)
):
    return serialize_task(_get_task_or_404(task_id, db))


# =====================================
# CREATE TASK
# =====================================
@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    require_project_exists(db, payload.project_id)
    if payload.assigned_to is not None:
        require_active_user(db, payload.assigned_to)

    task = Task(
        project_id=payload.project_id,
        name=payload.name,
        description=payload.description,
        assigned_to=payload.assigned_to,
        estimated_time=payload.estimated_time,
        status=TaskStatus.PENDING.value,
        acceptance_status=AcceptanceStatus.PENDING.value,
        total_tracked_seconds=0
    )

    db.add(task)
    db.commit()
    db.refresh(task)

    log.info(
        "task_created",
        task_id=task.id,
        project_id=task.project_id,
        assigned_to=task.assigned_to,
        created_by=current_user.id
    )
    return {"message": "Task created successfully", "task": serialize_task(task)}


# =====================================
# UPDATE TASK
# =====================================
@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    db: Session = Depends(get_db)
):
    task = _get_task_or_404(task_id, db)
    changes = payload.model_dump(exclude_unset=True)

    if "name" in changes:
        changes["name"] = require_non_empty_text(changes["name"], "Task name")
    if changes.get("assigned_to") is not None:
        require_active_user(db, changes["assigned_to"])
    if "assigned_to" in changes and changes["assigned_to"] != task.assigned_to:
        if task.status not in REASSIGNABLE_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Cannot reassign a task that is {task.status}"
            )
    if "estimated_time" in changes and changes["estimated_time"] is None:
        raise HTTPException(status_code=400, detail="Estimated time is required")

    if "status" in changes:
        new_status = changes.pop("status")
        if new_status is not None:
            if task.status not in CANCELLABLE_STATUSES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Cannot cancel a task that is {task.status}"
                )
            task.status = new_status

    for key, value in changes.items():
        setattr(task, key, value)

    _commit_or_conflict(task_id, db)
    db.refresh(task)
    return {"message": "Task updated successfully", "task": serialize_task(task)}


# =====================================
# DELETE TASK
# =====================================
@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = _get_task_or_404(task_id, db)
    db.delete(task)
    _commit_or_conflict(task_id, db)

    log.info("task_deleted", task_id=task_id, deleted_by=current_user.id)
    return {"message": "Task deleted successfully"}


# =====================================
# ACCEPT / REJECT
# =====================================
@router.put("/{task_id}/accept", response_model=TaskResponse)
def accept_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = _get_task_or_404(task_id, db)

    if not is_task_assignee(task, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only accept tasks assigned to you"
        )

    task.acceptance_status = AcceptanceStatus.ACCEPTED.value
    task.accepted_at = datetime.now(timezone.utc)
    task.rejection_reason = None

    _commit_or_conflict(task_id, db)
    db.refresh(task)
    return {"message": "Task accepted successfully", "task": serialize_task(task)}


@router.put("/{task_id}/reject", response_model=TaskResponse)
def reject_task(
    task_id: int,
    payload: Optional[TaskRejectRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task = _get_task_or_404(task_id, db)

    if not is_task_assignee(task, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only reject tasks assigned to you"
        )

    task.acceptance_status = AcceptanceStatus.REJECTED.value
    task.rejection_reason = (payload.rejection_reason if payload else None) or None

    _commit_or_conflict(task_id, db)
    db.refresh(task)
    return {"message": "Task rejected successfully", "task": serialize_task(task)}
