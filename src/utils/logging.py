"""
Shared logger for best-effort failure paths.

Reminder cleanup keeps going after a failed lookup or delete, so the failure
is only visible in the logs. Tracebacks are collapsed onto one line so each
failure stays a single CloudWatch record.

Typical usage:
    try:
        store.delete_one("reminders", user_id, reminder_id)
    except PersistenceError:
        log_exception(logger, "Could not delete stale reminder", extra={"reminder_id": reminder_id})
"""
import json
import os
import sys
import traceback

from aws_lambda_powertools import Logger

TRACEBACK_SEPARATOR = " | "

def format_exception(exc_info):
    """
    Render exception info as a single line.

    Args:
        exc_info: True for the exception being handled, an exception
            instance, or a (type, value, traceback) tuple

    Returns:
        Single-line traceback, or None if there is no exception
    """
    if exc_info is True:
        exc_info = sys.exc_info()
    elif isinstance(exc_info, BaseException):
        exc_info = (type(exc_info), exc_info, exc_info.__traceback__)

    if not (isinstance(exc_info, tuple) and len(exc_info) == 3 and exc_info[0]):
        return None
    lines = traceback.format_exception(*exc_info)
    return TRACEBACK_SEPARATOR.join(line.strip() for line in "".join(lines).splitlines() if line.strip())

class SingleLineLogger(Logger):
    """Powertools logger whose exception() output fits on one line."""

    def exception(self, message, *args, **kwargs):
        extra = kwargs.pop('extra', None) or {}
        extra['exception'] = format_exception(kwargs.pop('exc_info', True))
        super().exception(message, *args, exc_info=False, extra=extra, **kwargs)

logger = SingleLineLogger(
    service=os.environ.get('POWERTOOLS_SERVICE_NAME', 'pet_care'),
    level=os.environ.get('LOG_LEVEL', 'INFO'),
    log_uncaught_exceptions=True,
    json_serializer=lambda value: json.dumps(value, default=str),
    use_rfc3339=True
)

logger.append_keys(
    region=os.environ.get('AWS_REGION'),
    function=os.environ.get('AWS_LAMBDA_FUNCTION_NAME'),
    version=os.environ.get('AWS_LAMBDA_FUNCTION_VERSION')
)

def log_exception(logger, message, exc_info=None, **kwargs):
    """
    Log a handled failure at error level with its traceback on one line.

    Args:
        logger: Logger to write to
        message: What could not be done
        exc_info: Exception to report, defaults to the one being handled
    """
    extra = kwargs.pop('extra', None) or {}
    extra['exception'] = format_exception(exc_info or sys.exc_info())
    logger.error(message, extra=extra, **kwargs)
