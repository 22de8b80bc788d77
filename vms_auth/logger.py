"""
JSON Logging for the auth layer.

Every record becomes one JSON line so login, link, signup and logout
events can be grepped and shipped as-is.  Console output always; a
rotating log file only when ``LOG_FILE`` is configured.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO, Union

# Attributes every LogRecord carries; anything else arrived via ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.makeLogRecord({})).keys() | {"message", "asctime", "taskName"}
)


class JSONFormatter(logging.Formatter):
    """Render a record as ``{timestamp, level, logger_name, message}``.

    Fields passed through ``extra=`` (``event``, ``error_code``,
    ``user_id`` ...) are grouped under ``"extra"`` as strings; a traceback,
    when present, goes under ``"exception"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Union[str, dict[str, str]]] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: str(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


class StructuredLogger:
    """A named JSON logger handed to services through ``__init__``.

    Unset arguments fall back to ``AppConfig`` (``LOG_LEVEL``,
    ``LOG_FILE``, ``LOG_MAX_BYTES``, ``LOG_BACKUP_COUNT``).  Handlers are
    attached once per logger name, so building a second instance with the
    same name reuses the first one's output.

    ``stream`` replaces stdout, which is how tests capture output::

        buf = io.StringIO()
        log = StructuredLogger(name="vms_auth.test", stream=buf)
        log.info("Demo user authenticated", extra={"event": "DEMO_LOGIN"})
    """

    def __init__(
        self,
        name: str = "vms_auth",
        level: Optional[int] = None,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Lazy: config is read only once a logger is built.
        from vms_auth.config import get_config
        cfg = get_config()

        resolved_level = level if level is not None else cfg.log_level
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(resolved_level)

        if self._logger.handlers:
            return

        formatter = JSONFormatter()
        self._add_handler(logging.StreamHandler(stream or sys.stdout), resolved_level, formatter)

        path = log_file if log_file is not None else cfg.LOG_FILE
        if path:
            self._add_file_handler(
                path,
                max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
                resolved_level,
                formatter,
            )

    def _add_handler(
        self,
        handler: logging.Handler,
        level: int,
        formatter: logging.Formatter,
    ) -> None:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        self._logger.addHandler(handler)

    def _add_file_handler(
        self,
        path: str,
        max_bytes: int,
        backup_count: int,
        level: int,
        formatter: logging.Formatter,
    ) -> None:
        try:
            log_path = Path(path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                filename=str(log_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            self._logger.warning(
                "Log file '%s' unavailable (%s); logging to console only.", path, exc,
            )
            return
        self._add_handler(handler, level, formatter)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = "vms_auth") -> StructuredLogger:
    """``StructuredLogger`` for *name* with configured defaults."""
    return StructuredLogger(name=name)
