from flask_smorest import Blueprint
from flask.views import MethodView
from sqlalchemy import func

from debliss.models import User
from debliss.schemas import (
    SignupSchema, UserLoginSchema, CheckUsernameSchema,
    ForgotPasswordSchema, VerifyResetCodeSchema, ResetPasswordSchema,
    AdminCreateUserSchema
)
from debliss.services import accounts
from debliss.services.helper import issue_token


blp = Blueprint("Users", __name__, description="Accounts, login and password reset")


def auth_response(user):
    return {
        "success": True,
        "token": issue_token(user),
        "user": user.to_dict(),
    }


@blp.route("/signup")
class Signup(MethodView):
    @blp.arguments(SignupSchema)
    def post(self, user_data):
        """Register a customer account and send a welcome email."""
        user = accounts.signup(user_data)
        return auth_response(user)


@blp.route("/login")
class Login(MethodView):
    @blp.arguments(UserLoginSchema)
    def post(self, login_data):
        """Log in with email or username."""
        user = accounts.authenticate(login_data["identifier"], login_data["password"])
        return auth_response(user)


@blp.route("/check-username", methods=["POST"])
@blp.arguments(CheckUsernameSchema)
def check_username(data):
    existing = User.query.filter(
        func.lower(User.name) == data["username"].lower()
    ).first()
    return {
        "success": True,
        "available": not existing,
        "message": "Username is already taken" if existing else "Username is available",
    }


@blp.route("/forgot-password", methods=["POST"])
@blp.arguments(ForgotPasswordSchema)
def forgot_password(data):
    if not accounts.start_password_reset(data["email"]):
        return {"message": "If email exists, reset link sent."}
    return {"success": True, "message": "Reset link sent"}


@blp.route("/verify-reset-code", methods=["POST"])
@blp.arguments(VerifyResetCodeSchema)
def verify_reset_code(data):
    user = accounts.verify_reset_code(data["email"], data["code"])
    return {"success": True, "userId": user.id}


@blp.route("/reset-password", methods=["POST"])
@blp.arguments(ResetPasswordSchema)
def reset_password(data):
    accounts.reset_password(data["email"], data["new_password"], data.get("code"))
    return {"success": True, "message": "Password reset successful."}


@blp.route("/admin/create-user", methods=["POST"])
@blp.arguments(AdminCreateUserSchema)
def admin_create_user(data):
    """Create an admin, rider or customer account."""
    user = accounts.create_user(data, role=data["role"])
    return {"success": True, "user": user.to_dict()}


@blp.route("/admin/riders")
class RiderList(MethodView):
    def get(self):
        riders = User.query.filter_by(role="rider").order_by(User.name).all()
        return [rider.to_summary("name", "phone") for rider in riders]
