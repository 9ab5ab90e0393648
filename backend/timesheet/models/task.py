from sqlalchemy import (
    Column, Integer, String, Text, DateTime,
    ForeignKey, Numeric
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from timesheet.database.base import Base


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AcceptanceStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default=TaskStatus.PENDING.value, nullable=False, index=True)
    acceptance_status = Column(String(20), default=AcceptanceStatus.PENDING.value, nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Hours
    estimated_time = Column(Numeric(5, 2, asdecimal=False), nullable=False)

    # Relations
    project_id = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    assigned_to = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Timer bookkeeping, written only by the timer service
    total_tracked_seconds = Column(Integer, default=0, nullable=False)
    active_timer_started_at = Column(DateTime(timezone=True), nullable=True)
    last_paused_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    project = relationship("Project", back_populates="tasks")
    assignee = relationship("User", foreign_keys=[assigned_to])
    completed_user = relationship("User", foreign_keys=[completed_by])
    time_logs = relationship(
        "TaskTimeLog",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskTimeLog.occurred_at"
    )

    @property
    def project_name(self):
        return self.project.project_name if self.project else None

    @property
    def assignee_name(self):
        return self.assignee.name if self.assignee else None
