"""
Logging configuration for the SMS Gateway client

Library code only creates module loggers; setup_logging() is called by the
command-line entry point (or by an application embedding the client) to
attach a handler.
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone


def setup_logging(log_level=None, log_file=None, max_bytes=10*1024*1024, backup_count=5):
    """
    Set up logging for the SMS Gateway client.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, logs to stderr)
        max_bytes: Maximum size of log file before rotation (default 10MB)
        backup_count: Number of backup log files to keep (default 5)
    """
    if log_level is None:
        log_level = os.environ.get('LOG_LEVEL', 'INFO')
    log_level = log_level.upper()

    if log_file is None:
        log_file = os.environ.get('LOG_FILE')

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))
    root_logger.handlers.clear()

    if log_file:
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
    else:
        # stdout carries the raw API responses
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized - Level: {log_level}, Output: {log_file or 'stderr'}")

    return logger


def get_logger(name):
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_gateway_event(event_type, method, path, status_code=None, success=True, error=None):
    """
    Log a gateway request outcome as key=value pairs.

    Args:
        event_type: Type of event (e.g., 'request_ok', 'transport_error')
        method: HTTP method used
        path: API path, without base URL or query string
        status_code: HTTP status code if a response arrived
        success: Whether the request produced a body
        error: Error message if applicable
    """
    logger = get_logger('smsgateway.requests')

    log_data = {
        'event_type': event_type,
        'method': method,
        'path': path,
        'success': success,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }

    if status_code is not None:
        log_data['status_code'] = status_code
    if error:
        log_data['error'] = error

    log_message = ' '.join([f"{k}={v}" for k, v in log_data.items()])

    if success:
        logger.info(f"GATEWAY: {log_message}")
    else:
        logger.error(f"GATEWAY: {log_message}")
