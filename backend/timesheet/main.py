import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from timesheet.config import settings
from timesheet.core.errors import TimerError
from timesheet.core.logging_config import setup_logging
from timesheet.core.request_logging import RequestLoggingMiddleware
from timesheet.database.base import Base
from timesheet.database.session import engine
from timesheet.models.user import User  # noqa: F401
from timesheet.models.project import Project  # noqa: F401
from timesheet.models.task import Task  # noqa: F401
from timesheet.models.task_time_log import TaskTimeLog  # noqa: F401
from timesheet.routes import tasks, task_timer

log = structlog.get_logger(__name__)


def _format_validation_messages(exc: RequestValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = [str(v) for v in err.get("loc", []) if str(v) not in {"body", "query", "path"}]
        field = ".".join(loc) if loc else "field"
        err_type = str(err.get("type", ""))
        message = str(err.get("msg", "Invalid value"))

        if err_type in {"missing", "value_error.missing"}:
            messages.append(f"{field} is required")
        elif "string_too_short" in err_type:
            messages.append(f"{field} cannot be empty")
        elif field == "estimated_time" and "greater_than_equal" in err_type:
            messages.append("Estimated time must be greater than or equal to 0")
        elif field:
            messages.append(f"{field}: {message}")
        else:
            messages.append(message)

    # Preserve order while de-duplicating.
    return list(dict.fromkeys(messages))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = _format_validation_messages(exc)
    detail = messages[0] if len(messages) == 1 else "Validation failed"
    return JSONResponse(
        status_code=422,
        content={
            "detail": detail,
            "errors": messages,
        },
    )


async def timer_error_handler(request: Request, exc: TimerError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
    )


def create_app() -> FastAPI:
    setup_logging()

    app = FastAPI(title="Timesheet API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(TimerError, timer_error_handler)

    app.include_router(tasks.router)
    app.include_router(task_timer.router)

    @app.on_event("startup")
    def create_tables():
        Base.metadata.create_all(bind=engine)
        log.info("database_ready")

    return app


app = create_app()
