"""Logging configuration for pipegate.

Renders structured ``logger.bind``/keyword extras as ``key=value`` pairs
after the message, colored by level.
"""

import sys
from typing import TYPE_CHECKING

from loguru import logger


if TYPE_CHECKING:
    from loguru import Record


COLORS = {
    "amber": "#E0A526",  # Warnings, approvals
    "green": "#5B8A72",  # Success
    "muted": "#8A9A91",  # Timestamps, debug, extras
    "dim": "#4F5B55",  # Separators
    "text": "#E8EEE9",  # Message text
    "red": "#B0413E",  # Errors, denials
    "blue": "#5B9BD5",  # Info
}

LEVEL_COLORS = {
    "TRACE": COLORS["dim"],
    "DEBUG": COLORS["muted"],
    "INFO": COLORS["blue"],
    "SUCCESS": COLORS["green"],
    "WARNING": COLORS["amber"],
    "ERROR": COLORS["red"],
    "CRITICAL": COLORS["red"],
}


def _format_extra(extra: dict[str, object]) -> str:
    pairs = " ".join(f"{key}={value!r}" for key, value in extra.items())
    # Escape braces so loguru does not treat values as format fields
    return pairs.replace("{", "{{").replace("}", "}}")


def _log_format(record: "Record") -> str:
    """Build the loguru format string for one record.

    Format: ``HH:mm:ss | LEVEL | module:message | key=value ...``

    Args:
        record: Loguru record.

    Returns:
        Format string with loguru color tags.
    """
    color = LEVEL_COLORS.get(record["level"].name, COLORS["text"])
    sep = f"<fg {COLORS['dim']}>│</>"

    fmt = (
        f"<fg {COLORS['muted']}>{{time:HH:mm:ss}}</> {sep} "
        f"<fg {color}>{{level: <8}}</>{sep} "
        f"<fg {COLORS['muted']}>{{name}}</>:"
        f"<fg {COLORS['text']}>{{message}}</>"
    )

    if record["extra"]:
        fmt += f" <fg {COLORS['muted']}>{sep} {_format_extra(record['extra'])}</>"

    fmt += "\n"
    if record["exception"]:
        fmt += "{exception}\n"
    return fmt


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default handler with the pipegate stderr handler.

    Args:
        level: Minimum log level to display (e.g., "DEBUG", "INFO", "WARNING").
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=_log_format,
        colorize=True,
    )
