import logging
import time
import uuid
from flask import request, g

from .utils import sanitize_data, route_context

logger = logging.getLogger(__name__)

SENSITIVE_HEADERS = {'authorization', 'cookie', 'x-access-token'}

# Polled by uptime checks and the docs UI; not worth a log line each
QUIET_PREFIXES = ('/health', '/swagger-ui', '/openapi.json')


class RequestLoggerMiddleware:
    """Logs one line when a request starts and one when it completes."""

    def __init__(self, app):
        self.app = app
        self.register_middleware()

    def register_middleware(self):

        @self.app.before_request
        def start_request():
            g.request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex
            g.start_time = time.perf_counter()
            if self._is_quiet():
                return

            logger.info(
                f"{request.method} {request.path} started",
                extra={
                    'request_id': g.request_id,
                    'event': 'request_started',
                    'request_data': self._describe_request(),
                    **route_context()
                }
            )

        @self.app.after_request
        def finish_request(response):
            started = getattr(g, 'start_time', None)
            elapsed = time.perf_counter() - started if started is not None else 0.0
            request_id = getattr(g, 'request_id', None)

            if not self._is_quiet():
                level = logging.INFO
                if response.status_code >= 500:
                    level = logging.ERROR
                elif response.status_code >= 400:
                    level = logging.WARNING
                logger.log(
                    level,
                    f"{request.method} {request.path} -> {response.status_code} in {elapsed:.3f}s",
                    extra={
                        'request_id': request_id,
                        'event': 'request_completed',
                        'processing_time': elapsed,
                        'response_data': {
                            'status_code': response.status_code,
                            'content_length': response.content_length
                        },
                        **route_context()
                    }
                )

            if request_id:
                response.headers['X-Request-ID'] = request_id
            response.headers['X-Processing-Time'] = f"{elapsed:.3f}s"
            return response

    @staticmethod
    def _is_quiet():
        return request.path.startswith(QUIET_PREFIXES)

    @staticmethod
    def _describe_request():
        data = {
            'endpoint': request.endpoint,
            'remote_addr': request.remote_addr,
            'headers': {
                key: '***REDACTED***' if key.lower() in SENSITIVE_HEADERS else value
                for key, value in request.headers.items()
            },
        }
        if request.args:
            data['query_params'] = request.args.to_dict()
        if request.is_json:
            # Order and signup payloads carry phone numbers and passwords
            data['body'] = sanitize_data(request.get_json(silent=True))
        return data


def init_request_logger(app):
    return RequestLoggerMiddleware(app)
