import time
import functools
from flask import g, request, has_request_context
from .logging_config import get_logger

logger = get_logger(__name__)

# Compared case-insensitively against payload keys
SENSITIVE_KEYS = {
    'password', 'newpassword', 'token', 'code', 'contact',
    'customerphone', 'phone', 'authorization', 'access_token'
}

# View args worth copying onto every log record of a request
ROUTE_IDS = {
    'order_id': 'order_id',
    'reservation_id': 'reservation_id',
    'delivery_id': 'order_id',
    'user_id': 'user_id',
    'rider_id': 'rider_id',
}


def log_function_call(func):
    """Log entry, exit and failure of a service function, with timing."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        name = func.__qualname__
        started = time.perf_counter()
        logger.debug(f"{name} called", extra={
            'event': 'function_entry',
            'request_id': _request_id()
        })

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(
                f"{name} failed after {time.perf_counter() - started:.3f}s: {e}",
                extra={'event': 'function_error', 'request_id': _request_id()}
            )
            raise

        logger.debug(
            f"{name} finished in {time.perf_counter() - started:.3f}s",
            extra={'event': 'function_exit', 'request_id': _request_id()}
        )
        return result

    return wrapper


def _request_id():
    return getattr(g, 'request_id', None) if has_request_context() else None


def route_context():
    """Ids taken from the matched route, e.g. ``{'order_id': 7}``."""
    if not has_request_context() or not request.view_args:
        return {}
    return {
        field: request.view_args[arg]
        for arg, field in ROUTE_IDS.items()
        if arg in request.view_args
    }


def get_request_summary():
    """Short description of the current request for error logs."""
    if not has_request_context():
        return None

    return {
        'method': request.method,
        'path': request.path,
        'endpoint': request.endpoint,
        'view_args': request.view_args,
        'body': sanitize_data(request.get_json(silent=True)),
        'request_id': getattr(g, 'request_id', None)
    }


def sanitize_data(data, sensitive_keys=SENSITIVE_KEYS):
    """Copy of ``data`` with credential and contact fields masked."""
    if isinstance(data, list):
        return [sanitize_data(item, sensitive_keys) for item in data]
    if not isinstance(data, dict):
        return data
    return {
        key: '***REDACTED***' if str(key).lower() in sensitive_keys
        else sanitize_data(value, sensitive_keys)
        for key, value in data.items()
    }
