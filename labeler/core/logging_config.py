"""Logging setup for the labeler: console plus optional rotating log file.

Each bulk export runs under its own correlation id, so every line written
while one archive is being built can be picked out of a shared log.
"""
import logging
import logging.handlers
import sys
import json
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union

from .exceptions import ConfigError

_run_id: ContextVar[Optional[str]] = ContextVar('labeler_run_id', default=None)

LOG_FILE_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class CorrelationIDFilter(logging.Filter):
    """Stamp every record with the current run id ('-' outside a run)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _run_id.get() or '-'
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'ts': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'correlation_id': getattr(record, 'correlation_id', '-'),
            'where': f"{record.module}:{record.lineno}",
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry['error'] = {
                'type': record.exc_info[0].__name__,
                'detail': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time level [run] logger: message`` for terminals."""

    def __init__(self, include_correlation_id: bool = True):
        run = ' [%(correlation_id)s]' if include_correlation_id else ''
        super().__init__(f'%(asctime)s %(levelname)-7s{run} %(name)s: %(message)s')


class LoggingManager:
    """Owns the handlers the labeler adds to the root logger."""

    def __init__(self):
        self._handlers: Dict[str, logging.Handler] = {}
        self._configured = False
        self.log_dir: Optional[Path] = None

    @property
    def configured(self) -> bool:
        return self._configured

    def configure(
        self,
        log_level: str = 'INFO',
        log_dir: Optional[Union[str, Path]] = None,
        enable_file_logging: bool = False,
        enable_console_logging: bool = True,
        structured_logging: bool = False,
        log_name: str = 'obb-labeler',
    ) -> None:
        """Install handlers once; later calls are ignored until :meth:`shutdown`.

        Args:
            log_level: Level name for the root logger and every handler
            log_dir: Folder for ``<log_name>.log`` when file logging is on
            enable_file_logging: Add a size-rotated log file
            enable_console_logging: Add a stderr handler
            structured_logging: JSON lines instead of plain text
            log_name: Log file stem

        Raises:
            ConfigError: The log folder cannot be created or written
        """
        if self._configured:
            return

        level = logging.getLevelName(str(log_level).upper())
        if not isinstance(level, int):
            level = logging.INFO
        formatter = StructuredFormatter() if structured_logging else HumanReadableFormatter()

        # File first: a bad log_dir must leave no handlers behind
        if enable_file_logging:
            self.log_dir = Path(log_dir or 'logs')
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    self.log_dir / f'{log_name}.log',
                    maxBytes=LOG_FILE_BYTES,
                    backupCount=LOG_FILE_BACKUPS,
                    encoding='utf-8',
                )
            except OSError as e:
                raise ConfigError(f"Cannot write log files to {self.log_dir}: {e}") from e
            self._install('file', file_handler, level, formatter)

        if enable_console_logging:
            self._install('console', logging.StreamHandler(sys.stderr), level, formatter)

        logging.getLogger().setLevel(level)
        logging.getLogger('PIL').setLevel(logging.WARNING)
        self._configured = True
        logging.getLogger(__name__).debug(
            f"Logging ready: level={logging.getLevelName(level)} handlers={sorted(self._handlers)}"
        )

    def _install(self, name: str, handler: logging.Handler, level: int,
                 formatter: logging.Formatter) -> None:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(CorrelationIDFilter())
        logging.getLogger().addHandler(handler)
        self._handlers[name] = handler

    def shutdown(self) -> None:
        """Remove and close every handler this manager installed."""
        root = logging.getLogger()
        while self._handlers:
            _, handler = self._handlers.popitem()
            root.removeHandler(handler)
            handler.close()
        self._configured = False


logging_manager = LoggingManager()


def configure_from_config(config) -> None:
    """Configure logging from a LabelerConfig."""
    logging_manager.configure(
        log_level=config.log_level,
        log_dir=config.log_dir,
        enable_file_logging=config.enable_file_logging,
        structured_logging=config.structured_logging,
    )


def get_correlation_id() -> Optional[str]:
    return _run_id.get()


class CorrelationContext:
    """Run a block under a correlation id, restoring the outer one on exit."""

    def __init__(self, corr_id: Optional[str] = None):
        self.corr_id = corr_id or uuid.uuid4().hex[:8]
        self._token: Optional[Token] = None

    def __enter__(self) -> str:
        self._token = _run_id.set(self.corr_id)
        return self.corr_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _run_id.reset(self._token)
