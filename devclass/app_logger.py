from __future__ import annotations

import logging
import logging.handlers
import re
import shutil
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, MutableMapping

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s [%(threadName)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    log_dir: Path
    log_file: str = "devclass.log"
    console: bool = True
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    rotate_on_startup: bool = True


if TYPE_CHECKING:
    from devclass.app_config import AppConfig


class FieldLoggerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that prefixes every message with its bound fields.

    Fields are bound per call (``with_fields``) instead of being written into
    a shared logger, so two resolutions never see each other's tags.
    """

    def __init__(self, logger: logging.Logger, fields: dict[str, Any] | None = None) -> None:
        super().__init__(logger, dict(fields or {}))

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self.extra or {})

    def with_fields(self, **fields: Any) -> "FieldLoggerAdapter":
        merged = self.fields
        merged.update(fields)
        return FieldLoggerAdapter(self.logger, merged)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        fields = self.extra or {}
        if fields:
            tags = " ".join(f"{key}={value}" for key, value in fields.items())
            msg = f"[{tags}] {msg}"
        return msg, kwargs

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(TRACE, msg, *args, **kwargs)


class ColoredFormatter(logging.Formatter):
    """Console formatter that wraps the level name in an ANSI color."""

    COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().formatMessage(record)
        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().formatMessage(record)
        finally:
            record.levelname = plain


class _FlushOnEmit:
    """Mixin for handlers that must hit the disk or terminal on every record."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)  # type: ignore[misc]
            self.flush()  # type: ignore[attr-defined]
        except Exception:
            self.handleError(record)  # type: ignore[attr-defined]


class FlushingStreamHandler(_FlushOnEmit, logging.StreamHandler):  # type: ignore[type-arg]
    pass


class FlushingRotatingFileHandler(_FlushOnEmit, logging.handlers.RotatingFileHandler):
    pass


_FIRST_LINE_TIMESTAMP = re.compile(r"^(\d{4}-\d{2}-\d{2}) (\d{2}):(\d{2}):(\d{2})\.\d{3}")


def _log_start_stamp(log_path: Path) -> str:
    """Filename-safe start time of a log: its first line, else its mtime."""
    try:
        with open(log_path, "r", encoding="utf-8") as f:
            match = _FIRST_LINE_TIMESTAMP.match(f.readline())
    except (OSError, UnicodeDecodeError):
        match = None
    if match:
        day, hour, minute, second = match.groups()
        return f"{day}_{hour}-{minute}-{second}"
    return datetime.fromtimestamp(log_path.stat().st_mtime).strftime("%Y-%m-%d_%H-%M-%S")


def _archive_log_file(log_path: Path) -> None:
    """Move an existing log into ``archive/`` as ``<stem>_<start>[_n]<suffix>``."""
    if not log_path.exists():
        return

    archive_dir = log_path.parent / "archive"
    archive_dir.mkdir(parents=True, exist_ok=True)

    base_name = f"{log_path.stem}_{_log_start_stamp(log_path)}"
    target = archive_dir / f"{base_name}{log_path.suffix}"
    counter = 0
    while target.exists():
        counter += 1
        target = archive_dir / f"{base_name}_{counter}{log_path.suffix}"

    try:
        shutil.move(str(log_path), str(target))
    except OSError:
        # keep appending to the existing file
        pass


class AppLogger:
    _configured: bool = False

    @staticmethod
    def configure(app_config: "AppConfig") -> None:
        """
        Configure logging from an AppConfig instance.
        """
        logger_cfg = app_config.get("logger", {}) or {}

        config = LoggingConfig(
            level=logger_cfg.get("level", "INFO"),
            log_dir=Path(logger_cfg.get("log_dir", "logs")).resolve(),
            log_file=logger_cfg.get("log_file", "devclass.log"),
            console=logger_cfg.get("console", True),
            max_bytes=logger_cfg.get("max_bytes", 10 * 1024 * 1024),
            backup_count=logger_cfg.get("backup_count", 5),
            rotate_on_startup=logger_cfg.get("rotate_on_startup", True),
        )
        AppLogger(config)

    def __init__(self, config: LoggingConfig) -> None:
        if AppLogger._configured:
            return
        self._configure(config)
        AppLogger._configured = True

    @staticmethod
    def adapter(name: str | None = None, **fields: Any) -> FieldLoggerAdapter:
        """Return a field-tagging adapter around the named logger."""
        return FieldLoggerAdapter(logging.getLogger(name), fields)

    @staticmethod
    def _level(name: str) -> int:
        level = logging.getLevelName(name.upper())
        return level if isinstance(level, int) else logging.INFO

    @staticmethod
    def _handlers(config: LoggingConfig, log_path: Path) -> list[logging.Handler]:
        handlers: list[logging.Handler] = [
            FlushingRotatingFileHandler(
                filename=log_path,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        ]
        handlers[0].setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        if config.console:
            console = FlushingStreamHandler(sys.stderr)
            console.setFormatter(ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
            handlers.append(console)
        return handlers

    @staticmethod
    def _configure(config: LoggingConfig) -> None:
        level = AppLogger._level(config.level)

        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_path = config.log_dir / config.log_file
        if config.rotate_on_startup:
            _archive_log_file(log_path)

        root = logging.getLogger()
        root.setLevel(level)
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in AppLogger._handlers(config, log_path):
            handler.setLevel(level)
            root.addHandler(handler)

        AppLogger._suppress_third_party_loggers(level)

    @staticmethod
    def _suppress_third_party_loggers(level: int) -> None:
        logging.getLogger("asyncio").setLevel(logging.WARNING)
        # pysnmp debug output only when the app itself runs at DEBUG or TRACE
        logging.getLogger("pysnmp").setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
