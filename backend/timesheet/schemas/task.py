from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Literal
from enum import Enum


class TaskStatusEnum(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AcceptanceStatusEnum(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# ---------- CREATE ----------
class TaskCreate(BaseModel):
    project_id: int
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    estimated_time: float = Field(ge=0, description="Estimated time in hours")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str):
        value = value.strip()
        if not value:
            raise ValueError("Task name cannot be empty")
        return value


# ---------- UPDATE ----------
class TaskUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    estimated_time: Optional[float] = Field(default=None, ge=0)
    # Timer statuses are driven by the timer endpoints only
    status: Optional[Literal["cancelled"]] = None


class TaskRejectRequest(BaseModel):
    rejection_reason: Optional[str] = None


# ---------- TIMER ----------
class TimerActionRequest(BaseModel):
    note: Optional[str] = Field(default=None, max_length=2000)


class TaskTimeLogOut(BaseModel):
    id: int
    task_id: int
    user_id: int
    action: str
    occurred_at: datetime
    note: Optional[str] = None
    resulting_status: str
    elapsed_seconds: int = 0

    class Config:
        from_attributes = True


# ---------- OUT ----------
class TaskOut(BaseModel):
    id: int
    project_id: int
    project_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    assigned_to: Optional[int] = None
    assignee_name: Optional[str] = None
    estimated_time: float
    status: str
    acceptance_status: str
    accepted_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    total_tracked_seconds: int = 0
    active_timer_started_at: Optional[datetime] = None
    last_paused_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Derived at read time, never stored
    current_tracked_seconds: int = 0
    is_overtime: bool = False

    class Config:
        from_attributes = True


class TaskResponse(BaseModel):
    message: str
    task: TaskOut


class MessageResponse(BaseModel):
    message: str


class ActiveTaskOut(BaseModel):
    id: int
    name: str
    status: str
    active_timer_started_at: Optional[datetime] = None
    total_seconds: int
