import logging
import logging.handlers
from pathlib import Path
import traceback

from inventory_planner.config import config


class Logger:
    """Hands out named loggers writing to a rotating file and the console."""

    _instance = None
    _loggers = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        settings = config.log_config
        self._formatter = logging.Formatter(settings['format'])
        self._level = getattr(logging, settings['level'].upper(), logging.INFO)
        self._console = settings['console_output']
        self._max_bytes = settings['max_size_mb'] * 1024 * 1024
        self._backup_count = settings['backup_count']

        # An empty directory setting disables file logging
        self._log_dir = Path(settings['directory']) if settings['directory'] else None
        if self._log_dir is not None:
            self._log_dir.mkdir(parents=True, exist_ok=True)

        self._app_logger = self.get_logger('app')
        self._initialized = True

    def _handlers(self, name):
        handlers = []

        if self._log_dir is not None:
            handlers.append(logging.handlers.RotatingFileHandler(
                self._log_dir / f"{name}.log",
                maxBytes=self._max_bytes,
                backupCount=self._backup_count
            ))

        if self._console:
            handlers.append(logging.StreamHandler())

        for handler in handlers:
            handler.setFormatter(self._formatter)
        return handlers

    def get_logger(self, name):
        """Get a logger with the specified name.

        The first call for a name attaches its handlers; later calls return
        the same logger.

        Args:
            name: Name of the logger, also the log file name

        Returns:
            Configured logger instance
        """
        if name in self._loggers:
            return self._loggers[name]

        logger = logging.getLogger(name)
        logger.setLevel(self._level)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        for handler in self._handlers(name):
            logger.addHandler(handler)

        logger.propagate = False

        self._loggers[name] = logger
        return logger

    def set_level(self, level):
        """Change the level of every logger, including ones created later.

        Args:
            level: Logging level (e.g. logging.DEBUG)
        """
        self._level = level
        for logger in self._loggers.values():
            logger.setLevel(level)

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception followed by its stack trace.

        Args:
            logger_name: Logger name
            exception: Exception object
            message: Optional context prefixed to the exception text
        """
        logger = self.get_logger(logger_name)
        logger.error(f"{message}: {str(exception)}" if message else str(exception))
        logger.error(traceback.format_exc())

    @property
    def app_logger(self):
        return self._app_logger


# Global logger instance
logger = Logger()


def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)
