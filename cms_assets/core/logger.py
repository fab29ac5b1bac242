"""
Logging and Error Handling System

This module provides centralized logging configuration and error tracking
for asset localization runs.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Optional, Dict, Any
import traceback
from pathlib import Path


class CmsAssetsLogger:
    """
    Centralized logging for the asset localizer.

    Writes a detailed rotating log file, a separate error log, and a concise
    console stream.
    """

    def __init__(self, log_dir: str = "logs", app_name: str = "cms_assets"):
        """
        Args:
            log_dir: Directory to store log files
            app_name: Root logger name; also used for log file names
        """
        self.log_dir = Path(log_dir)
        self.app_name = app_name
        self.loggers: Dict[str, logging.Logger] = {}

        self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logger(self, level: int = logging.INFO) -> logging.Logger:
        """
        Attach file and console handlers to the application logger.

        Args:
            level: Logging level of the application logger

        Returns:
            Configured logger instance
        """
        logger = logging.getLogger(self.app_name)
        logger.setLevel(level)

        # Prevent duplicate handlers
        if logger.handlers:
            self.loggers['main'] = logger
            return logger

        detailed_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        file_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / f"{self.app_name}.log",
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(detailed_formatter)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(console_formatter)

        error_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / f"{self.app_name}_errors.log",
            maxBytes=5*1024*1024,  # 5MB
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.addHandler(error_handler)

        self.loggers['main'] = logger
        return logger

    def get_logger(self, name: str) -> logging.Logger:
        """Get a child logger of the application logger."""
        full_name = f"{self.app_name}.{name}"

        if full_name not in self.loggers:
            self.loggers[full_name] = logging.getLogger(full_name)

        return self.loggers[full_name]

    def log_system_info(self):
        """Log interpreter and environment details for debugging."""
        logger = self.get_logger('system')

        logger.info("=== Asset localizer started ===")
        logger.info(f"Python version: {sys.version}")
        logger.info(f"Platform: {sys.platform}")
        logger.info(f"Working directory: {os.getcwd()}")
        logger.info(f"Log directory: {self.log_dir.absolute()}")


class ErrorTracker:
    """
    Collects errors and warnings raised while processing assets.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.errors: list = []
        self.warnings: list = []

    def log_error(self,
                  error: Exception,
                  context: str = None,
                  url: str = None,
                  additional_info: Dict[str, Any] = None) -> str:
        """
        Log an error with context information.

        Args:
            error: The exception that occurred
            context: Stage where the error occurred
            url: Asset URL being processed
            additional_info: Extra details to keep with the error

        Returns:
            Error ID for tracking
        """
        error_id = f"ERR_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.errors):03d}"

        self.errors.append({
            'id': error_id,
            'timestamp': datetime.now(),
            'type': type(error).__name__,
            'message': str(error),
            'context': context,
            'url': url,
            'traceback': traceback.format_exc(),
            'additional_info': additional_info or {}
        })

        self.logger.error(self._format(error_id, f"{type(error).__name__}: {error}", context, url))
        self.logger.debug(f"[{error_id}] Full traceback:\n{self.errors[-1]['traceback']}")

        return error_id

    def log_warning(self,
                    message: str,
                    context: str = None,
                    url: str = None) -> str:
        """
        Log a warning with context information.

        Returns:
            Warning ID for tracking
        """
        warning_id = f"WARN_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.warnings):03d}"

        self.warnings.append({
            'id': warning_id,
            'timestamp': datetime.now(),
            'message': message,
            'context': context,
            'url': url
        })

        self.logger.warning(self._format(warning_id, message, context, url))

        return warning_id

    @staticmethod
    def _format(item_id: str, message: str, context: Optional[str], url: Optional[str]) -> str:
        log_message = f"[{item_id}] {message}"
        if context:
            log_message += f" (Context: {context})"
        if url:
            log_message += f" (URL: {url})"
        return log_message

    def get_error_summary(self) -> Dict[str, Any]:
        """Counts and the most recent errors and warnings."""
        type_counts: Dict[str, int] = {}
        for error in self.errors:
            type_counts[error['type']] = type_counts.get(error['type'], 0) + 1

        return {
            'total_errors': len(self.errors),
            'total_warnings': len(self.warnings),
            'error_types': type_counts,
            'recent_errors': self.errors[-5:],
            'recent_warnings': self.warnings[-5:]
        }


# Global logger instance
_logger_instance: Optional[CmsAssetsLogger] = None


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Name of the module/component (optional)

    Returns:
        Logger instance
    """
    global _logger_instance

    if _logger_instance is None:
        _logger_instance = CmsAssetsLogger()

    if name:
        return _logger_instance.get_logger(name)
    return _logger_instance.get_logger('main')


def initialize_logging(log_dir: str = "logs", level: int = logging.INFO) -> logging.Logger:
    """
    Initialize the global logging system.

    Args:
        log_dir: Directory for log files
        level: Logging level
    """
    global _logger_instance
    _logger_instance = CmsAssetsLogger(log_dir)
    logger = _logger_instance.setup_logger(level)
    _logger_instance.log_system_info()
    return logger


def create_error_tracker(logger_name: str = None) -> ErrorTracker:
    """Create an error tracker bound to the named logger."""
    return ErrorTracker(get_logger(logger_name))
