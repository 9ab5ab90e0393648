"""Errors raised by the task timer service.

Every error carries the message shown to API clients verbatim and the HTTP
status the API layer answers with.
"""


class TimerError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TaskNotFound(TimerError):
    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class TaskForbidden(TimerError):
    def __init__(self, task_id: int, user_id: int):
        super().__init__(f"User {user_id} is not the assignee of task {task_id}")
        self.task_id = task_id
        self.user_id = user_id


class InvalidTransition(TimerError):
    def __init__(self, current_status: str, action: str):
        super().__init__(f"Cannot {action} a task that is {current_status}")
        self.current_status = current_status
        self.action = action


class TaskConflict(TimerError):
    """Another transition changed the task first. Safe to retry."""

    status_code = 409

    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} was modified concurrently, please retry")
        self.task_id = task_id


class StorageFailure(TimerError):
    status_code = 500

    def __init__(self, message: str = "Task storage is unavailable"):
        super().__init__(message)
