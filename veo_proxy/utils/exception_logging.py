"""
Helpers for logging and rendering exceptions raised while talking to the upstream API.
"""

import logging


def _safe_str(obj) -> str:
    """
    Convert an object to a string without ever raising.

    Falls back to ``repr`` and finally to the type name when ``__str__`` fails.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def format_exception_message(exception: Exception) -> str:
    """
    Render an exception as a client-facing message.

    httpx transport errors frequently carry an empty message (e.g. ``ReadTimeout()``),
    so the exception type name is used when there is nothing else to show.

    Args:
        exception: The exception to format

    Returns:
        A non-empty description of the exception
    """
    if exception is None:
        return "None"
    message = _safe_str(exception)
    if message:
        return message
    return type(exception).__name__


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: Exception,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its type, message and the request that triggered it.
    Never raises, so it is safe to call from inside ``except`` blocks.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[T2V]", "[DOWNLOAD]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        message = f"{prefix} {type(exception).__name__}: {format_exception_message(exception)}"
        # httpx errors know which outbound request failed
        try:
            request = getattr(exception, "request", None)
        except RuntimeError:
            request = None
        if request is not None:
            message = f"{message} ({request.method} {request.url})"
        logger.log(level, message, exc_info=exception)
    except Exception:
        try:
            logger.log(level, f"{prefix} Exception (logging failed)")
        except Exception:
            pass
