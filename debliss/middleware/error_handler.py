import traceback
import logging
from flask import jsonify
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from marshmallow import ValidationError

from .utils import get_request_summary

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware:
    """Renders every failure as ``{"success": false, "error": ...}``."""

    def __init__(self, app):
        self.app = app
        self.register_error_handlers()

    def register_error_handlers(self):

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(e):
            data = getattr(e, "data", None) or {}
            status_code = e.code or 500
            errors = None

            # webargs reports schema failures as 422 with field messages
            if "messages" in data:
                errors = self._flatten_messages(data["messages"])
                status_code = 400
                message = self._first_message(errors) or "Validation Error"
            else:
                message = data.get("message") or e.description or e.name

            return self._respond(e, status_code, message, errors)

        @self.app.errorhandler(ValidationError)
        def handle_validation_error(e):
            errors = e.messages
            return self._respond(e, 400, self._first_message(errors) or "Validation Error", errors)

        @self.app.errorhandler(SQLAlchemyError)
        def handle_sqlalchemy_error(e):
            from debliss import db
            db.session.rollback()
            return self._respond(e, 500, "Database Error")

        @self.app.errorhandler(Exception)
        def handle_generic_exception(e):
            return self._respond(e, 500, "Internal Server Error")

    @staticmethod
    def _flatten_messages(messages):
        # {"json": {"field": [...]}} -> {"field": [...]}
        if isinstance(messages, dict) and len(messages) == 1:
            (location, inner), = messages.items()
            if location in ("json", "query", "form", "view_args") and isinstance(inner, dict):
                return inner
        return messages

    @classmethod
    def _first_message(cls, errors):
        if isinstance(errors, str):
            return errors
        if isinstance(errors, list):
            for item in errors:
                found = cls._first_message(item)
                if found:
                    return found
        if isinstance(errors, dict):
            for value in errors.values():
                found = cls._first_message(value)
                if found:
                    return found
        return None

    def _respond(self, exception, status_code, message, errors=None):
        request_info = get_request_summary()

        if status_code >= 500:
            logger.error(
                f"Server Error: {type(exception).__name__} - {exception}",
                extra={
                    'event': 'server_error',
                    'request_data': request_info,
                    'traceback': traceback.format_exc()
                }
            )
        else:
            logger.warning(
                f"Client Error: {status_code} - {message}",
                extra={
                    'event': 'client_error',
                    'request_data': request_info
                }
            )

        body = {"success": False, "error": message}
        if errors:
            body["errors"] = errors
        return jsonify(body), status_code


def init_error_handler(app):
    """Initialize error handler middleware"""
    return ErrorHandlerMiddleware(app)
