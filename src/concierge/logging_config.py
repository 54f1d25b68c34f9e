"""
Structured JSON Logging Configuration for the Concierge Core

Provides consistent, parseable logging for development and production.
Logs can be viewed with jq for easy filtering and analysis.
"""
import functools
import inspect
import json
import logging
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

# Attributes every LogRecord carries; anything else arrived via extra={}.
_STANDARD_ATTRS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
    'taskName', 'getMessage', 'asctime'
}


class JSONFormatter(logging.Formatter):
    """
    Custom JSON formatter for structured logging.

    Outputs logs as single-line JSON objects that are:
    - Machine-parseable (CloudWatch, Elasticsearch, etc.)
    - Human-readable with jq
    - Consistent across environments
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Include all non-standard attributes from extra={}
        for attr_name, attr_value in record.__dict__.items():
            if attr_name in _STANDARD_ATTRS or attr_name in log_data:
                continue
            # Only include serializable types
            if isinstance(attr_value, (str, int, float, bool, type(None), dict, list)):
                log_data[attr_name] = attr_value

        return json.dumps(log_data, ensure_ascii=False, default=str)


class PrettyFormatter(logging.Formatter):
    """
    Readable single-line formatter for development.

    Same fields as the JSON output, rendered as key=value pairs after the
    message.
    """

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a colored line."""
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']

        parts = [
            f"{color}[{record.levelname}]{reset}",
            datetime.now(timezone.utc).strftime('%H:%M:%S.%f')[:-3],
            f"{record.name}:",
            record.getMessage(),
        ]

        extra_parts = [
            f"{k}={v}" for k, v in record.__dict__.items()
            if k not in _STANDARD_ATTRS and v is not None
        ]
        if extra_parts:
            parts.append(f"({', '.join(extra_parts)})")

        result = ' '.join(parts)
        if record.exc_info:
            result += '\n' + self.formatException(record.exc_info)
        return result


def setup_logging(
    app_name: str = 'concierge',
    log_level: str = 'INFO',
    log_format: str = 'json',
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure structured logging for the application.

    Args:
        app_name: Name of the application logger
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format type ('json' or 'pretty')
        log_file: Optional file path for file-based logging

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logging('concierge', 'INFO', 'json')
        >>> logger.info('Locale tables loaded', extra={'locales': ['en', 'de']})
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(app_name)
    logger.setLevel(numeric_level)
    logger.handlers = []  # Clear any existing handlers

    if log_format == 'pretty':
        formatter: logging.Formatter = PrettyFormatter()
    else:
        formatter = JSONFormatter()

    # Console handler (stdout)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(numeric_level)
            # Always use JSON for file logs
            file_handler.setFormatter(JSONFormatter())
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Failed to setup file logging: {e}")

    # Don't propagate to root logger
    logger.propagate = False

    return logger


def generate_request_id() -> str:
    """
    Generate a short request ID for tracing.

    Returns:
        8-character unique identifier
    """
    return str(uuid.uuid4())[:8]


# ============================================================================
# Function Call Logging Decorator
# ============================================================================

def log_function_call(
    level: str = 'DEBUG',
    log_time: bool = True
):
    """
    Decorator to log a call summary, its outcome and timing.

    Summaries carry short string arguments verbatim and only lengths or
    counts for everything larger.

    Args:
        level: Log level for summaries ('INFO' or 'DEBUG')
        log_time: Whether to log execution time

    Example:
        >>> @log_function_call()
        ... def normalize(self, message: str, locale: str = None):
        ...     return result

        Produces logs:
        DEBUG: TimeNormalizer.normalize() called (message_length=25, locale=en)
        DEBUG: TimeNormalizer.normalize() completed (duration_ms=0.4, changes_count=1)
    """

    def decorator(func: Callable) -> Callable:
        logger = logging.getLogger(func.__module__)
        log_level = getattr(logging, level.upper(), logging.DEBUG)

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            if not logger.isEnabledFor(log_level):
                return func(*args, **kwargs)

            func_name = func.__qualname__
            logger.log(log_level, f"{func_name}() called",
                       extra=_summarize_args(func, args, kwargs))

            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"{func_name}() failed after {round(duration, 2)}ms",
                    extra={
                        'error_type': type(e).__name__,
                        'error_message': str(e),
                        'duration_ms': round(duration, 2)
                    },
                    exc_info=True
                )
                raise

            result_info = _summarize_result(result)
            if log_time:
                result_info['duration_ms'] = round((time.perf_counter() - start_time) * 1000, 2)
            logger.log(log_level, f"{func_name}() completed", extra=result_info)
            return result

        return wrapper
    return decorator


def _summarize_args(func, args, kwargs) -> Dict[str, Any]:
    """Prepare argument summary for logging."""
    info: Dict[str, Any] = {}
    try:
        bound_args = inspect.signature(func).bind_partial(*args, **kwargs)
    except TypeError:
        return info

    for param_name, param_value in bound_args.arguments.items():
        if param_name == 'self':
            continue
        # LogRecord refuses extra keys that shadow its own attributes
        key = f'arg_{param_name}' if param_name in _STANDARD_ATTRS else param_name
        if isinstance(param_value, str):
            info[f'{param_name}_length'] = len(param_value)
            if len(param_value) <= 16:
                info[key] = param_value
        elif isinstance(param_value, (list, tuple, dict)):
            info[f'{param_name}_count'] = len(param_value)
        elif isinstance(param_value, (int, float, bool)) or param_value is None:
            info[key] = param_value
    return info


def _summarize_result(result) -> Dict[str, Any]:
    """Prepare result summary for logging."""
    info: Dict[str, Any] = {}
    if result is None:
        info['result'] = 'None'
    if hasattr(result, 'changes'):
        info['changes_count'] = len(result.changes)
    if hasattr(result, 'is_terminal'):
        info['terminal'] = result.is_terminal
        info['resolution'] = type(result).__name__
    if isinstance(result, dict) and 'success' in result:
        info['success'] = result['success']
    return info
