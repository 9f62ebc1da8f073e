"""
JSON logging for the fulfillment service.

Handlers live on the base "agrocycle" logger and are configured once per
process; `get_logger(name)` hands out named children that propagate to it,
so every line carries the module that wrote it.

    LOG_DIR    directory for agrocycle.log (INFO+) and errors.log (ERROR+)
    LOG_LEVEL  console threshold, DEBUG by default
"""

import logging
import json
import os
from pathlib import Path
import threading

BASE_LOGGER = "agrocycle"

DEFAULT_FIELDS = {
    "time": "asctime",
    "level": "levelname",
    "logger": "name",
    "function": "funcName",
    "line": "lineno",
    "message": "message",
}


class LoggingSetup:
    """Attaches the file and console handlers to the base logger, once"""
    _lock = threading.Lock()
    _configured = False

    @classmethod
    def ensure(cls) -> logging.Logger:
        base = logging.getLogger(BASE_LOGGER)
        if cls._configured:
            return base
        with cls._lock:
            if not cls._configured:
                cls._configure(base)
                cls._configured = True
        return base

    @staticmethod
    def _configure(base: logging.Logger) -> None:
        base.setLevel(logging.DEBUG)
        base.handlers.clear()
        formatter = JsonFormatter(DEFAULT_FIELDS)

        logs_dir = Path(os.environ.get("LOG_DIR", "logs"))
        logs_dir.mkdir(parents=True, exist_ok=True)

        # Truncated at startup
        for filename, level in (("agrocycle.log", logging.INFO), ("errors.log", logging.ERROR)):
            handler = logging.FileHandler(logs_dir / filename, mode='w', encoding='utf-8')
            handler.setLevel(level)
            handler.setFormatter(formatter)
            base.addHandler(handler)

        console_level = os.environ.get("LOG_LEVEL", "DEBUG").upper()
        console = logging.StreamHandler()
        console.setLevel(getattr(logging, console_level, logging.DEBUG))
        console.setFormatter(formatter)
        base.addHandler(console)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Args:
        fields: output key -> LogRecord attribute; {"message": "message"} when omitted
    """

    def __init__(self, fields: dict = None, time_format: str = "%Y-%m-%dT%H:%M:%S"):
        super().__init__()
        self.fields = fields if fields is not None else {"message": "message"}
        self.default_time_format = time_format
        self.default_msec_format = "%s.%03dZ"

    def usesTime(self) -> bool:
        return "asctime" in self.fields.values()

    def formatMessage(self, record) -> dict:
        return {key: record.__dict__[attr] for key, attr in self.fields.items()}

    def format(self, record) -> str:
        record.message = record.getMessage()
        if self.usesTime():
            record.asctime = self.formatTime(record)

        payload = self.formatMessage(record)

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            payload["exc_info"] = record.exc_text
        if record.stack_info:
            payload["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(payload, default=str)


def get_logger(name: str = BASE_LOGGER) -> logging.Logger:
    """
    Logger for `name`, placed under the base logger when it is not already.
    """
    LoggingSetup.ensure()
    if name != BASE_LOGGER and not name.startswith(BASE_LOGGER + "."):
        name = f"{BASE_LOGGER}.{name}"
    return logging.getLogger(name)
