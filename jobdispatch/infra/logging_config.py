# jobdispatch/infra/logging_config.py
"""
Logging setup.

One stdout handler on the root logger: JSON lines in production, a
coloured single line per record in development.  Dispatch context
(driver, booking, notification, request) travels on records via
``extra=`` or a bound ``LogContext`` and is rendered by both formatters.
"""
import json
import logging
import sys
from datetime import datetime, timezone

# record attribute -> short console label
_CONTEXT_FIELDS = {
    "driver_id": "driver",
    "booking_id": "booking",
    "notification_id": "notification",
    "request_id": "req",
}


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


def _context_of(record: logging.LogRecord) -> dict:
    return {
        name: getattr(record, name)
        for name in _CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
            **_context_of(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable format for development"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        stamp = _record_time(record).strftime("%H:%M:%S.%f")[:-3]

        context = " ".join(
            f"{_CONTEXT_FIELDS[name]}={value}" for name, value in _context_of(record).items()
        )
        if context:
            context = f" [{context}]"

        line = (
            f"{color}{stamp} {record.levelname:<8}{self.RESET} "
            f"{record.name}{context}: {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", use_json: bool = False) -> None:
    """
    Configure application logging

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        use_json: JSON lines instead of coloured console output
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if use_json else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Reduce noise from third-party libraries
    for noisy in ("uvicorn.access", "aiohttp.access", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured: level=%s, json=%s", level, use_json)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """Logger wrapper that stamps every record with bound dispatch context"""

    def __init__(self, logger: logging.Logger, **fields):
        self.logger = logger
        self.context = {k: v for k, v in fields.items() if v is not None}

    def bind(self, **fields) -> "LogContext":
        """New context with extra fields; the original is left untouched."""
        return LogContext(self.logger, **{**self.context, **fields})

    def _log(self, level: int, msg: str, *args, **kwargs):
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.context}
        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)


def mask_coordinates(lat: float, lng: float) -> str:
    """Coordinates rounded to one decimal (about 10 km) for log lines.

    ``mask_coordinates(51.5237, -0.1585)`` → ``"51.5**, -0.2**"``
    """
    return f"{lat:.1f}**, {lng:.1f}**"
