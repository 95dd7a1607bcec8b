from debliss import db
from debliss.models import User
from debliss.services.helper import (
    hash_password, verify_password, find_user_by_identity,
    utcnow, commit_or_abort
)
from debliss.services.email import send_email, send_email_quietly

from flask import render_template
from flask_smorest import abort
from datetime import timedelta
import logging
import random
import string

logger = logging.getLogger(__name__)

RESET_CODE_TTL = timedelta(hours=1)


def create_user(data, role="user"):
    """Create an account; name and email must be unused (case-insensitive)."""
    if find_user_by_identity(data["email"], data["name"]):
        abort(409, message="User already exists")

    user = User(
        name=data["name"],
        email=data["email"],
        password=hash_password(data["password"]),
        phone=data.get("phone"),
        role=role,
    )
    db.session.add(user)
    commit_or_abort("Server error")
    logger.info(f"User {user.id} created with role {role}", extra={'event': 'user_created'})
    return user


def signup(data):
    user = create_user(data)
    send_email_quietly(
        user.email,
        "🎉 Welcome to DE BLISS - Your culinary journey begins!",
        "email/welcome.html",
        user=user
    )
    return user


def authenticate(identifier, password):
    user = find_user_by_identity(identifier)
    if not user or not verify_password(password, user.password):
        logger.warning("Login failed", extra={'event': 'login_failed'})
        abort(401, message="Invalid credentials")
    return user


def start_password_reset(email):
    """Store a 6-digit reset code and email it. Unknown emails are ignored."""
    user = User.query.filter_by(email=email).first()
    if not user:
        return False

    user.reset_token = ''.join(random.choices(string.digits, k=6))
    user.reset_token_expires = utcnow() + RESET_CODE_TTL
    commit_or_abort("Server error")

    html_body = render_template("email/reset_code.html", user=user)
    try:
        send_email(user.email, "Reset Password Code", html_body)
    except Exception as e:
        logger.error(f"Reset code email failed for user {user.id}: {e}",
                     extra={'event': 'email_failed'})
        abort(500, message="Email send failed")
    return True


def _reset_code_valid(user, code=None):
    if not user or not user.reset_token or not user.reset_token_expires:
        return False
    if utcnow() > user.reset_token_expires:
        return False
    return code is None or user.reset_token == code


def verify_reset_code(email, code):
    user = User.query.filter_by(email=email).first()
    if not _reset_code_valid(user, code):
        abort(400, message="Invalid or expired code.")
    return user


def reset_password(email, new_password, code=None):
    user = User.query.filter_by(email=email).first()
    if not user:
        abort(404, message="User not found.")
    if not _reset_code_valid(user, code):
        abort(400, message="Invalid or expired token.")

    user.password = hash_password(new_password)
    user.reset_token = None
    user.reset_token_expires = None
    commit_or_abort("Server error.")
    return user
