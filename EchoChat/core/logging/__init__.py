"""
Logging setup for EchoChat processes.

Chat text goes to stdout through each component's ``display`` callback, so
log records are kept off stdout: the console handler writes to stderr and,
when enabled, a pair of rotating files under ``log_dir`` keeps everything
(``echochat.log``) and errors only (``echochat_errors.log``).

Modules log through the standard library:

    logger = logging.getLogger(__name__)

and a process entry point picks a preset once at startup:

    from EchoChat.core.logging import auto_configure

    auto_configure()            # reads ECHOCHAT_ENV
    auto_configure("testing")   # explicit preset
"""

import logging
import logging.handlers
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

MAIN_LOG_FILE = "echochat.log"
ERROR_LOG_FILE = "echochat_errors.log"

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TRACE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(filename)s:%(lineno)d - %(funcName)s] - %(message)s"
)


@dataclass
class LogConfig:
    """
    Settings applied by LoggingManager.configure().

    Attributes:
        level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory holding the rotating log files
        console_output: Attach a stderr handler
        file_output: Attach the rotating file handlers
        max_bytes: Size at which a log file rotates
        backup_count: Rotated files kept per log
        format_string: Record format; each handler has its own default if unset
        date_format: ``asctime`` format
        component_levels: Logger name to level name overrides
    """
    level: str = "INFO"
    log_dir: str = "./logs"
    console_output: bool = True
    file_output: bool = True
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    format_string: Optional[str] = None
    date_format: str = "%Y-%m-%d %H:%M:%S"
    component_levels: Dict[str, str] = field(default_factory=dict)


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name with ANSI escapes."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, fmt: str, datefmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.platform != 'win32'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname) if self.use_colors else None
        if color is None:
            return super().format(record)
        # The record is shared with the file handlers
        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(tinted)


def _level(name: Union[str, int]) -> int:
    if isinstance(name, int):
        return name
    return getattr(logging, name.upper())


class LoggingManager:
    """
    Owner of the handlers EchoChat installs on the root logger.

    There is one manager per process. Reconfiguring swaps out the manager's
    own handlers and leaves any others (pytest's capture handler, say) alone.
    """

    _instance: Optional['LoggingManager'] = None

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._config = None
            instance._handlers = []
            cls._instance = instance
        return cls._instance

    @property
    def config(self) -> Optional[LogConfig]:
        """The configuration applied last, if any."""
        return self._config

    @property
    def handlers(self) -> List[logging.Handler]:
        return list(self._handlers)

    def configure(self, config: LogConfig) -> None:
        """
        Apply ``config`` to the root logger.

        Args:
            config: Logging configuration
        """
        level = _level(config.level)
        root = logging.getLogger()
        root.setLevel(level)

        self._detach(root)
        if config.console_output:
            self._attach(root, self._console_handler(config, level))
        if config.file_output:
            for handler in self._file_handlers(config, level):
                self._attach(root, handler)

        for name, component_level in config.component_levels.items():
            logging.getLogger(name).setLevel(_level(component_level))

        self._config = config
        logging.getLogger(__name__).debug("Logging configured at %s", config.level)

    def set_level(self, level: Union[str, int]) -> None:
        """Change the root level and the level of every managed handler."""
        level = _level(level)
        logging.getLogger().setLevel(level)
        for handler in self._handlers:
            handler.setLevel(level)

    def shutdown(self) -> None:
        """Flush and close all handlers."""
        logging.getLogger(__name__).debug("Shutting down logging")
        logging.shutdown()

    def _attach(self, root: logging.Logger, handler: logging.Handler) -> None:
        root.addHandler(handler)
        self._handlers.append(handler)

    def _detach(self, root: logging.Logger) -> None:
        for handler in self._handlers:
            root.removeHandler(handler)
            handler.close()
        self._handlers = []

    @staticmethod
    def _console_handler(config: LogConfig, level: int) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(ColoredFormatter(config.format_string or PLAIN_FORMAT, config.date_format))
        return handler

    @staticmethod
    def _file_handlers(config: LogConfig, level: int) -> List[logging.Handler]:
        log_dir = Path(config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        formatter = logging.Formatter(config.format_string or TRACE_FORMAT, config.date_format)

        handlers = []
        for filename, handler_level in ((MAIN_LOG_FILE, level), (ERROR_LOG_FILE, logging.ERROR)):
            handler = logging.handlers.RotatingFileHandler(
                log_dir / filename,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding='utf-8'
            )
            handler.setLevel(handler_level)
            handler.setFormatter(formatter)
            handlers.append(handler)
        return handlers


_logging_manager = LoggingManager()


def configure_logging(config: LogConfig) -> None:
    """Apply ``config`` through the process-wide LoggingManager."""
    _logging_manager.configure(config)


def get_logging_manager() -> LoggingManager:
    return _logging_manager


def create_development_config() -> LogConfig:
    """Verbose console and file logging under ./logs/dev."""
    return LogConfig(
        level="DEBUG",
        log_dir="./logs/dev",
        max_bytes=5 * 1024 * 1024,
        backup_count=3,
        format_string=TRACE_FORMAT,
        component_levels={"websockets": "WARNING", "asyncio": "WARNING"},
    )


def create_production_config() -> LogConfig:
    """File logging only, so the operator console shows nothing but chat."""
    return LogConfig(
        level="INFO",
        log_dir="./logs/prod",
        console_output=False,
        max_bytes=50 * 1024 * 1024,
        backup_count=10,
        format_string=TRACE_FORMAT,
        component_levels={"websockets": "ERROR"},
    )


def create_testing_config() -> LogConfig:
    """Console logging only; nothing is written to disk."""
    return LogConfig(
        level="DEBUG",
        log_dir="./logs/test",
        file_output=False,
        format_string="%(levelname)s - %(message)s",
        component_levels={"websockets": "ERROR"},
    )


PRESETS: Dict[str, Callable[[], LogConfig]] = {
    "development": create_development_config,
    "dev": create_development_config,
    "production": create_production_config,
    "prod": create_production_config,
    "testing": create_testing_config,
    "test": create_testing_config,
}


def auto_configure(env: Optional[str] = None) -> str:
    """
    Configure logging from a named preset.

    Args:
        env: Preset name; defaults to ``ECHOCHAT_ENV``. Unknown names fall
             back to development.

    Returns:
        The preset name that was applied
    """
    env = (env or os.environ.get("ECHOCHAT_ENV") or "development").lower()
    if env not in PRESETS:
        env = "development"
    configure_logging(PRESETS[env]())
    logging.getLogger(__name__).debug("Logging preset: %s", env)
    return env


__all__ = [
    'ColoredFormatter',
    'LogConfig',
    'LoggingManager',
    'PRESETS',
    'auto_configure',
    'configure_logging',
    'create_development_config',
    'create_production_config',
    'create_testing_config',
    'get_logging_manager',
]
