"""Logging abstraction layer for the push gateway client.

Provides dual-format logging (JSON + human-readable) with correlation tracking
and structured context. Handlers are attached once to the package logger
(``apns_pusher``); module loggers propagate to it.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

from typing_extensions import override

from apns_pusher.correlation import get_correlation_id

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "PushLogger",
    "configure_logging",
    "get_logger",
]


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            context_map = cast("Mapping[str, object]", extra_data)
            log_data["context"] = dict(context_map)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formatter that outputs human-readable logs with correlation IDs."""

    def __init__(self) -> None:
        # Format: timestamp level [module:line] correlation_id > message
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        record.correlation_id = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"

        formatted = super().format(record)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            context_map = cast("Mapping[str, object]", extra_data)
            context_str = " | ".join(f"{k}={v}" for k, v in context_map.items())
            formatted = f"{formatted} | {context_str}"

        return formatted


def configure_logging(
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
    level: int | None = None,
) -> logging.Logger:
    """Attach handlers to the package logger.

    Safe to call more than once: existing handlers are replaced, so calling it
    again with new settings reconfigures output instead of duplicating it.

    Args:
        log_format: "json", "human", or "both" (default: APNS_LOG_FORMAT)
        json_file: Path for JSON output (default: APNS_LOG_JSON_FILE, None disables)
        human_output: "stdout", "stderr", or a file path (default: APNS_LOG_HUMAN_OUTPUT)
        level: Logging level (default: DEBUG when APNS_DEBUG is set, else INFO)

    Returns:
        The configured package logger

    """
    from apns_pusher.const import (  # noqa: PLC0415
        APNS_DEBUG,
        APNS_LOG_FORMAT,
        APNS_LOG_HUMAN_OUTPUT,
        APNS_LOG_JSON_FILE,
        APNS_LOG_NAME,
    )

    log_format = log_format or APNS_LOG_FORMAT
    json_file = json_file or APNS_LOG_JSON_FILE
    human_output = human_output or APNS_LOG_HUMAN_OUTPUT
    if level is None:
        level = logging.DEBUG if APNS_DEBUG else logging.INFO

    base_logger = logging.getLogger(APNS_LOG_NAME)
    base_logger.setLevel(level)
    for handler in list(base_logger.handlers):
        base_logger.removeHandler(handler)
        handler.close()

    if log_format in ("json", "both") and json_file:
        try:
            json_path = Path(json_file)
            json_path.parent.mkdir(parents=True, exist_ok=True)
            json_handler = logging.FileHandler(json_path, mode="a")
            json_handler.setFormatter(JSONFormatter())
            json_handler.setLevel(level)
            base_logger.addHandler(json_handler)
        except (OSError, PermissionError) as e:
            print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)

    if log_format in ("human", "both"):
        if human_output == "stdout":
            human_handler: logging.Handler = logging.StreamHandler(sys.stdout)
        elif human_output == "stderr":
            human_handler = logging.StreamHandler(sys.stderr)
        else:
            try:
                human_path = Path(human_output)
                human_path.parent.mkdir(parents=True, exist_ok=True)
                human_handler = logging.FileHandler(human_path, mode="a")
            except (OSError, PermissionError) as e:
                print(f"Warning: Failed to create human log file {human_output}: {e}", file=sys.stderr)
                human_handler = logging.StreamHandler(sys.stderr)

        human_handler.setFormatter(HumanReadableFormatter())
        human_handler.setLevel(level)
        base_logger.addHandler(human_handler)

    return base_logger


class PushLogger:
    """Logger wrapper that carries structured context in ``extra``.

    Context passed as ``extra={...}`` is stored on the record as
    ``extra_data`` so both formatters can render it.
    """

    def __init__(self, name: str) -> None:
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        extra_payload: Mapping[str, object] | None = None
        if extra:
            extra_payload = {"extra_data": dict(extra)}

        # stacklevel=3 reports the caller of debug()/info() rather than this wrapper
        self.logger.log(level, msg, *args, extra=extra_payload, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)


_configured = {"done": False}


def get_logger(name: str) -> PushLogger:
    """Return a PushLogger, configuring the package handlers on first use."""
    if not _configured["done"]:
        from apns_pusher.const import APNS_LOG_NAME  # noqa: PLC0415

        if not logging.getLogger(APNS_LOG_NAME).handlers:
            configure_logging()
        _configured["done"] = True
    return PushLogger(name)
