from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
import enum

from timesheet.database.base import Base


class TimerAction(str, enum.Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    COMPLETE = "complete"


class TaskTimeLog(Base):
    """One row per successful timer transition. Rows are never updated."""

    __tablename__ = "task_time_logs"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    action = Column(String(20), nullable=False)
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    note = Column(Text, nullable=True)
    resulting_status = Column(String(20), nullable=False)
    elapsed_seconds = Column(Integer, default=0, nullable=False)

    # Relationships
    task = relationship("Task", back_populates="time_logs")
    user = relationship("User")
