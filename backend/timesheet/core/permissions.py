from timesheet.core.errors import TaskForbidden
from timesheet.models.task import Task
from timesheet.models.user import User


def is_task_assignee(task: Task, user: User) -> bool:
    return task.assigned_to is not None and task.assigned_to == user.id


def ensure_task_assignee(task: Task, user: User) -> None:
    # Only the assignee runs the timer. No manager or admin override.
    if not is_task_assignee(task, user):
        raise TaskForbidden(task.id, user.id)
