from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from timesheet.database.base import Base


class Project(Base):
    # Managed by the project CRUD service; tasks only reference it.
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    project_name = Column(String, nullable=False)
    project_code = Column(String, unique=True, nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    # ===============================
    # Relationships
    # ===============================

    # tasks under this project
    tasks = relationship(
        "Task",
        back_populates="project",
        cascade="all, delete-orphan"
    )
