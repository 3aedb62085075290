# app/core/logging_config.py
import logging
import sys
from typing import Optional

def setup_logging(level: str = "INFO"):
    """
    Configures global logging for the entire application.
    Logs to stdout (container-friendly) and includes timestamps.
    """
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Global logging configured.")


def get_activity_logger() -> logging.Logger:
    """Logger for the user activity trail (logins, cast edits, user admin)."""
    return logging.getLogger("app.activity")


def log_activity(action: str, details: str = "", username: Optional[str] = None, level: int = logging.INFO):
    """Writes one activity entry in the `User: x | Action: y | Details: z` layout."""
    get_activity_logger().log(
        level, f"User: {username or 'anonymous'} | Action: {action} | Details: {details}"
    )
