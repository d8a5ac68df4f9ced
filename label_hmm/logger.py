"""
Logging infrastructure for LabelHMM.

Every module logs through a child of the ``label_hmm`` logger. That logger
gets a console handler at import time and, on request, a single file handler
owned by this module. Records do not propagate to the root logger, so
handlers installed by applications or test runners are left alone.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

from .config import get_config

ROOT_LOGGER_NAME = 'label_hmm'
DEFAULT_LOG_FILE = 'label_hmm.log'


def _parse_level(level: Union[str, int]) -> int:
    """Translate a level name such as ``'debug'`` into its numeric value."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


class LabelHMMLogger:
    """Owns the handlers attached to the package logger."""

    def __init__(self):
        self._loggers = {}
        self._console_handler: Optional[logging.Handler] = None
        self._file_handler: Optional[logging.FileHandler] = None
        self._setup_root_logger()

    @property
    def root_logger(self) -> logging.Logger:
        return logging.getLogger(ROOT_LOGGER_NAME)

    @property
    def log_file(self) -> Optional[Path]:
        """Path written by the active file handler, or None."""
        if self._file_handler is None:
            return None
        return Path(self._file_handler.baseFilename)

    def _formatter(self) -> logging.Formatter:
        return logging.Formatter(get_config('logging', 'format'))

    def _setup_root_logger(self):
        level = _parse_level(get_config('logging', 'level') or 'INFO')

        root_logger = self.root_logger
        root_logger.setLevel(level)
        root_logger.propagate = False
        root_logger.handlers.clear()

        self._console_handler = logging.StreamHandler(sys.stdout)
        self._console_handler.setLevel(level)
        self._console_handler.setFormatter(self._formatter())
        root_logger.addHandler(self._console_handler)

        if get_config('logging', 'file_logging'):
            self.enable_file_logging()

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger below ``label_hmm``; dotted module names are kept as is."""
        if name == ROOT_LOGGER_NAME or name.startswith(f'{ROOT_LOGGER_NAME}.'):
            full_name = name
        else:
            full_name = f'{ROOT_LOGGER_NAME}.{name}'

        if full_name not in self._loggers:
            self._loggers[full_name] = logging.getLogger(full_name)

        return self._loggers[full_name]

    def set_level(self, level: Union[str, int]):
        """Set the level of the package logger and of the handlers it owns."""
        value = _parse_level(level)
        self.root_logger.setLevel(value)
        for handler in (self._console_handler, self._file_handler):
            if handler is not None:
                handler.setLevel(value)

    def enable_file_logging(self, log_file: Optional[Union[str, Path]] = None) -> Path:
        """
        Write package log records to ``log_file``.

        Args:
            log_file: Target path (default: ``logging.log_file`` from config)

        Returns:
            Absolute path of the log file

        A call for the file that is already open is a no-op. A call for a
        different file closes the current handler and opens the new one.
        """
        if log_file is None:
            log_file = get_config('logging', 'log_file') or DEFAULT_LOG_FILE
        log_path = Path(os.path.abspath(log_file))

        if self._file_handler is not None:
            if self.log_file == log_path:
                return log_path
            self.disable_file_logging()

        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.FileHandler(log_path)
        handler.setLevel(self.root_logger.level)
        handler.setFormatter(self._formatter())
        self.root_logger.addHandler(handler)
        self._file_handler = handler

        return log_path

    def disable_file_logging(self):
        """Close and detach the file handler, if any."""
        if self._file_handler is None:
            return
        self.root_logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None


_logger_manager = LabelHMMLogger()


def get_logger(name: str = 'main') -> logging.Logger:
    """Get a logger instance for the specified module/component."""
    return _logger_manager.get_logger(name)


def set_log_level(level: Union[str, int]):
    """Set global logging level."""
    _logger_manager.set_level(level)


def enable_file_logging(log_file: Optional[Union[str, Path]] = None) -> Path:
    """Enable file logging globally; returns the log file path."""
    return _logger_manager.enable_file_logging(log_file)


def disable_file_logging():
    """Disable file logging globally."""
    _logger_manager.disable_file_logging()


def current_log_file() -> Optional[Path]:
    """Path of the active log file, or None when file logging is off."""
    return _logger_manager.log_file
