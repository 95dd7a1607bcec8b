from .error_handler import init_error_handler
from .request_logger import init_request_logger
from .logging_config import setup_logging, get_logger


def init_middleware(app):
    """Logging first, so the handlers below log through it."""
    setup_logging(app)
    init_error_handler(app)
    init_request_logger(app)

    get_logger(__name__).info("Middleware initialized", extra={
        'event': 'middleware_initialized',
        'environment': 'testing' if app.testing else 'runtime'
    })
