from debliss import db
from debliss.models import User

from flask import current_app
from flask_jwt_extended import create_access_token
from flask_smorest import abort
from passlib.hash import pbkdf2_sha256
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from datetime import datetime
import logging
import pytz

logger = logging.getLogger(__name__)


def utcnow():
    """Naive UTC instant, as stored in DateTime columns."""
    return datetime.utcnow()


def current_time():
    """Timezone-aware current instant."""
    return datetime.now(pytz.utc)


def restaurant_timezone():
    return pytz.timezone(current_app.config.get("RESTAURANT_TIMEZONE", "UTC"))


def hash_password(password):
    return pbkdf2_sha256.hash(password)


def verify_password(password, hashed):
    try:
        return pbkdf2_sha256.verify(password, hashed)
    except (ValueError, TypeError):
        return False


def issue_token(user):
    """Signed access token; validity comes from JWT_ACCESS_TOKEN_EXPIRES."""
    return create_access_token(identity=str(user.id), additional_claims={"role": user.role})


def find_user_by_identity(*identities):
    """Case-insensitive match of any identity against email or name."""
    lowered = [identity.lower() for identity in identities if identity]
    return User.query.filter(or_(
        func.lower(User.email).in_(lowered),
        func.lower(User.name).in_(lowered)
    )).first()


def get_item_or_404(Model, id, entity):
    item = db.session.get(Model, id)
    if not item:
        abort(404, message=f"{entity} not found")
    return item


def commit_or_abort(message, **context):
    """Commit the session; roll back and answer 500 on storage failure."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"{message}: {e}", extra={'event': 'storage_error', **context})
        abort(500, message=message)
