"""
Logging setup for RouteKeeper.

Logging is configured once per process from environment variables. Records
go to a rotating file under ``LOG_DIRECTORY`` unless ``LOG_TO_STDOUT`` is set.

Environment Variables:
    LOG_LEVEL: Root level (DEBUG, INFO, WARNING, ERROR)
    LOG_DIRECTORY: Directory of the log file
    LOG_BASE_NAME: Log file name without extension
    LOG_MAX_BYTES: Size at which the file is rotated
    LOG_BACKUP_COUNT: Rotated files kept
    LOG_TO_STDOUT: Log to the console instead of a file
    LOG_SQL: Echo SQLAlchemy statements at INFO

Example::

    from routekeeper.infrastructure.logging_config import LoggerConfig

    LoggerConfig.initialize()
    logger = LoggerConfig.get_logger(__name__)
"""

import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers and the level they are held at
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "multipart": logging.WARNING,
}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class LoggingOptions:
    """Resolved logging options; unset fields fall back to the environment."""

    level: str = "INFO"
    directory: str = "logs"
    base_name: str = "routekeeper"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    file_path: Optional[str] = None
    to_stdout: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "LoggingOptions":
        options = cls(
            level=os.getenv("LOG_LEVEL", cls.level),
            directory=os.getenv("LOG_DIRECTORY", cls.directory),
            base_name=os.getenv("LOG_BASE_NAME", cls.base_name),
            max_bytes=int(os.getenv("LOG_MAX_BYTES", cls.max_bytes)),
            backup_count=int(os.getenv("LOG_BACKUP_COUNT", cls.backup_count)),
            to_stdout=_env_flag("LOG_TO_STDOUT"),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(options, key, value)
        return options

    @property
    def log_file(self) -> Path:
        if self.file_path:
            return Path(self.file_path)
        return Path(self.directory) / f"{self.base_name}.log"


def _build_handler(options: LoggingOptions) -> logging.Handler:
    if options.to_stdout:
        return logging.StreamHandler()
    log_file = options.log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=options.max_bytes,
        backupCount=options.backup_count,
        encoding="utf-8",
    )


def setup_basic_logging(
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
    base_name: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: Optional[int] = None,
    log_file_path: Optional[str] = None,
    log_to_stdout: Optional[bool] = None,
) -> None:
    """Install a single handler on the root logger.

    Arguments left as None are read from the environment. Handlers already on
    the root logger are removed.
    """
    options = LoggingOptions.from_env(
        level=level,
        directory=log_dir,
        base_name=base_name,
        max_bytes=max_bytes,
        backup_count=backup_count,
        file_path=log_file_path,
        to_stdout=log_to_stdout,
    )
    handler = _build_handler(options)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, options.level.upper(), logging.INFO))

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if _env_flag("LOG_SQL") else logging.WARNING
    )
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


class LoggerConfig:
    """Once-per-process logging initialization."""

    _initialized = False
    _log_level: Optional[str] = None

    @classmethod
    def initialize(cls, level: Optional[str] = None, **kwargs) -> None:
        """Configure logging on the first call; later calls do nothing.

        Args:
            level: Root level, defaults to LOG_LEVEL
            **kwargs: Passed to setup_basic_logging()
        """
        if cls._initialized:
            return
        level = level or os.getenv("LOG_LEVEL", "INFO")
        setup_basic_logging(level=level, **kwargs)
        cls._log_level = level
        cls._initialized = True

    @classmethod
    def get_level(cls) -> str:
        return cls._log_level or os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def set_level(cls, level: str) -> None:
        cls._log_level = level
        logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized

    @classmethod
    def reset(cls) -> None:
        cls._initialized = False
        cls._log_level = None

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Logger for ``name``, configuring logging first if needed."""
        cls.initialize()
        return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
