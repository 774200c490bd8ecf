"""Logging setup for DealDesk.

The application logs to three sinks: a terse console stream, a rotating
human readable text file and a rotating JSON lines file carrying the
structured payloads emitted by :mod:`dealdesk.telemetry`.
"""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from .util.time import utc_now_iso

LOG_DIR_ENV = "DEALDESK_LOG_DIR"
_DEFAULT_HOME_DIR = ".dealdesk"
_DEFAULT_LOG_SUBDIR = "logs"
_TEXT_LOG_NAME = "dealdesk.log"
_JSON_LOG_NAME = "dealdesk.jsonl"
_ROTATION_BACKUPS = 5
_LOG_MAX_BYTES = 2 * 1024 * 1024

logger = logging.getLogger("dealdesk")

_log_dir: Path | None = None


class ConsoleFormatter(logging.Formatter):
    """Console formatter appending the structured payload of telemetry events."""

    def __init__(self) -> None:
        """Use the short ``LEVEL: message`` console template."""
        super().__init__("%(levelname)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extra_json = getattr(record, "json", None)
        if not isinstance(extra_json, dict) or not extra_json.get("payload"):
            return base
        if record.msg != extra_json.get("event"):
            return base
        try:
            payload_text = json.dumps(extra_json["payload"], ensure_ascii=False)
        except TypeError:
            payload_text = json.dumps(str(extra_json["payload"]), ensure_ascii=False)
        return f"{base} {payload_text}"


class JsonFormatter(logging.Formatter):
    """Convert log records into single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        payload: Any = getattr(record, "json", None)
        if isinstance(payload, dict):
            data = dict(payload)
        elif payload is None:
            data = {}
        else:
            data = {"data": payload}
        data.setdefault("message", record.message)
        data.setdefault("level", record.levelname)
        data.setdefault("logger", record.name)
        data.setdefault("timestamp", utc_now_iso())
        if record.exc_info and "exc_info" not in data:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


class JsonlHandler(RotatingFileHandler):
    """Write log records as JSON lines with built-in rotation."""

    def __init__(
        self,
        filename: Path | str,
        *,
        max_bytes: int = _LOG_MAX_BYTES,
        backup_count: int = _ROTATION_BACKUPS,
        encoding: str = "utf-8",
        delay: bool = False,
    ) -> None:
        """Create the parent directory of *filename* and attach the JSON formatter."""
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding=encoding,
            delay=delay,
        )
        self.setFormatter(JsonFormatter())


def _resolve_log_dir(log_dir: str | Path | None) -> Path:
    if log_dir is not None:
        path = Path(log_dir).expanduser()
    else:
        env_dir = os.environ.get(LOG_DIR_ENV)
        if env_dir:
            path = Path(env_dir).expanduser()
        else:
            path = Path.home() / _DEFAULT_HOME_DIR / _DEFAULT_LOG_SUBDIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def configure_logging(
    level: int = logging.INFO,
    *,
    log_dir: str | Path | None = None,
    console: bool = True,
) -> Path:
    """Configure the ``dealdesk`` logger once and return the log directory.

    Repeated calls are no-ops so that embedding applications and the CLI
    can both call it safely.
    """
    global _log_dir

    if logger.handlers and _log_dir is not None:
        return _log_dir

    resolved_dir = _resolve_log_dir(log_dir).resolve()
    _log_dir = resolved_dir

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(ConsoleFormatter())
        logger.addHandler(stream_handler)

    file_handler = RotatingFileHandler(
        resolved_dir / _TEXT_LOG_NAME,
        encoding="utf-8",
        maxBytes=_LOG_MAX_BYTES,
        backupCount=_ROTATION_BACKUPS,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(file_handler)

    json_handler = JsonlHandler(resolved_dir / _JSON_LOG_NAME)
    json_handler.setLevel(logging.DEBUG)
    logger.addHandler(json_handler)

    logger.setLevel(logging.DEBUG)
    return resolved_dir


def get_log_file_paths() -> tuple[Path, Path]:
    """Return paths to text and JSONL log files, configuring logging if needed."""
    directory = _log_dir if _log_dir is not None else configure_logging()
    return directory / _TEXT_LOG_NAME, directory / _JSON_LOG_NAME


__all__ = [
    "ConsoleFormatter",
    "JsonFormatter",
    "JsonlHandler",
    "configure_logging",
    "get_log_file_paths",
    "logger",
]
