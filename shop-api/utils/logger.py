"""
Logging utilities
"""
import logging
import logging.handlers
import os
import structlog
from typing import Optional, Any
from configs.settings import settings

class CustomLogger:
    """Logger that writes to both stdlib logging and structlog, accepting keyword context"""

    def __init__(self, name: str = None):
        self._logger = logging.getLogger(name or __name__)
        self._struct_logger = structlog.get_logger(name or __name__)

        log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
        self._logger.setLevel(log_level)

    def _format_message_with_kwargs(self, message: str, **kwargs) -> str:
        """Append key=value pairs to the message"""
        if kwargs:
            kwargs_str = ", ".join([f"{k}={v}" for k, v in kwargs.items()])
            return f"{message} [{kwargs_str}]"
        return message

    def _log(self, level: int, message: str, error: Optional[Any] = None,
             exc_info: bool = False, **kwargs):
        method = logging.getLevelName(level).lower()
        if error is not None:
            formatted_msg = self._format_message_with_kwargs(f"{message}: {error}", **kwargs)
            self._logger.log(level, formatted_msg, exc_info=exc_info or level >= logging.ERROR)
            getattr(self._struct_logger, method)(message, error=str(error), **kwargs)
        else:
            formatted_msg = self._format_message_with_kwargs(message, **kwargs)
            self._logger.log(level, formatted_msg, exc_info=exc_info)
            getattr(self._struct_logger, method)(message, **kwargs)

    def debug(self, message: str, error: Optional[Any] = None, **kwargs):
        self._log(logging.DEBUG, message, error, **kwargs)

    def info(self, message: str, error: Optional[Any] = None, **kwargs):
        self._log(logging.INFO, message, error, **kwargs)

    def warning(self, message: str, error: Optional[Any] = None, **kwargs):
        self._log(logging.WARNING, message, error, **kwargs)

    def error(self, message: str, error: Optional[Any] = None, **kwargs):
        """Error log, includes the active traceback when an error is given"""
        self._log(logging.ERROR, message, error, **kwargs)

    def critical(self, message: str, error: Optional[Any] = None, **kwargs):
        self._log(logging.CRITICAL, message, error, **kwargs)

    def exception(self, message: str, **kwargs):
        """Exception log (automatically includes stack information)"""
        formatted_msg = self._format_message_with_kwargs(message, **kwargs)
        self._logger.exception(formatted_msg)
        self._struct_logger.exception(message, **kwargs)

def setup_logging():
    """Setup logging configuration"""
    if settings.log_file:
        log_dir = os.path.dirname(settings.log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    handlers = []

    if settings.log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_max_size,
            backupCount=settings.log_backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    # asyncpg and uvicorn are noisy at debug level
    for noisy in ("asyncpg", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(max(log_level, logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger(__name__).debug(
        "Logging configured - level=%s file=%s handlers=%d",
        settings.log_level, settings.log_file, len(handlers)
    )

def get_logger(name: str = None) -> CustomLogger:
    """Get custom logger"""
    return CustomLogger(name)
