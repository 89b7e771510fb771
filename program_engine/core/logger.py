"""Logger configuration for the program engine.

Engine modules log structured context as keyword arguments
(``logger.debug("Resolved day index", enrollment_id=..., day_index=...)``).
The sinks here render that context as ``key=value`` pairs after the message.
"""

import sys
from pathlib import Path

from loguru import logger

from program_engine.config.settings import settings

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def render_context(extra: dict) -> str:
    """Render bound context as sorted ``key=value`` pairs."""
    return " ".join(f"{key}={value}" for key, value in sorted(extra.items()) if not key.startswith("_"))


def _formatter(base: str):
    def format_record(record) -> str:
        # Stored under extra so braces in values never reach the template
        record["extra"]["_context"] = render_context(record["extra"])
        suffix = " | {extra[_context]}" if record["extra"]["_context"] else ""
        return base + suffix + "\n{exception}"

    return format_record


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    module_levels: dict[str, str] | None = None,
) -> None:
    """Configure loguru logger with console and optional file output.

    Args:
        level: Default logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If None, only console logging.
        rotation: Log rotation size (e.g., "10 MB", "1 day")
        retention: Log retention period (e.g., "7 days", "1 month")
        module_levels: Per-module level overrides, e.g.
            ``{"program_engine.db": "WARNING"}`` to quiet store writes
    """
    logger.remove()

    # Handlers accept every level; the filter applies the default and per-module levels
    levels = {"": level, **(module_levels or {})}

    logger.add(
        sys.stderr,
        format=_formatter(_CONSOLE_FORMAT),
        level=0,
        filter=levels,
        colorize=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            format=_formatter(_FILE_FORMAT),
            level=0,
            filter=levels,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.debug("Logger initialized", level=level, module_levels=module_levels or {})


# Initialize logger on import
setup_logger(level=settings.log_level, log_file=settings.log_file, module_levels=settings.log_module_levels)
