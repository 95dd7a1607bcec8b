from marshmallow import (
    Schema,
    fields,
    validate,
    ValidationError,
    post_load,
    validates_schema,
    EXCLUDE
)
from datetime import datetime

from debliss.models import ORDER_STATUS_MARKERS


EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
ROLES = ["user", "admin", "rider"]
ACCOMPANIMENT_CATEGORIES = ["soup", "sauce", "stew", "protein", "extra"]
RESERVATION_STATUSES = ["pending", "confirmed", "cancelled", "completed"]

NonEmpty = validate.Length(min=1)


class BaseSchema(Schema):
    class Meta:
        unknown = EXCLUDE


# ---------------------------------------------------------------- users

class SignupSchema(BaseSchema):
    name = fields.Str(required=True, validate=NonEmpty)
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=NonEmpty)
    phone = fields.Str(required=True, validate=NonEmpty)


class AdminCreateUserSchema(BaseSchema):
    name = fields.Str(required=True, validate=NonEmpty)
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=NonEmpty)
    phone = fields.Str(allow_none=True, load_default=None)
    role = fields.Str(
        required=True,
        validate=validate.OneOf(ROLES, error="Role must be one of user, admin or rider.")
    )


class UserLoginSchema(BaseSchema):
    identifier = fields.Str(required=True, validate=NonEmpty)  # email or name
    password = fields.Str(required=True, load_only=True)


class CheckUsernameSchema(BaseSchema):
    username = fields.Str(
        required=True,
        validate=validate.Length(min=3, error="Username must be at least 3 characters")
    )


class ForgotPasswordSchema(BaseSchema):
    email = fields.Email(required=True)


class VerifyResetCodeSchema(BaseSchema):
    email = fields.Email(required=True)
    code = fields.Str(required=True)


class ResetPasswordSchema(BaseSchema):
    email = fields.Email(required=True)
    new_password = fields.Str(required=True, data_key="newPassword",
                              load_only=True, validate=NonEmpty)
    code = fields.Str(load_default=None)


# ---------------------------------------------------------------- catalog

class MenuItemSchema(BaseSchema):
    name = fields.Str(required=True, validate=NonEmpty)
    price = fields.Float(required=True, validate=validate.Range(min=0))
    category = fields.Str(required=True, validate=NonEmpty)
    image = fields.Str(data_key="imageUrl", allow_none=True)
    description = fields.Str()
    available = fields.Bool()
    allowed_accompaniments = fields.List(
        fields.Int(), data_key="allowedAccompaniments")


class PriceUpdateSchema(BaseSchema):
    id = fields.Int(required=True)
    price = fields.Float(required=True, validate=validate.Range(min=0))


class AccompanimentSchema(BaseSchema):
    name = fields.Str(required=True, validate=NonEmpty)
    price = fields.Float(required=True, validate=validate.Range(min=0))
    category = fields.Str(required=True, validate=validate.OneOf(ACCOMPANIMENT_CATEGORIES))
    available = fields.Bool()


class AccompanimentUpdateSchema(AccompanimentSchema):
    id = fields.Int(required=True)
    name = fields.Str(validate=NonEmpty)
    price = fields.Float(validate=validate.Range(min=0))
    category = fields.Str(validate=validate.OneOf(ACCOMPANIMENT_CATEGORIES))


# ---------------------------------------------------------------- orders

class ChosenAccompanimentSchema(BaseSchema):
    name = fields.Str(required=True, validate=NonEmpty)
    price = fields.Float(allow_none=True)


class OrderItemSchema(BaseSchema):
    menu_item = fields.Int(required=True, data_key="menuItem")
    quantity = fields.Int(load_default=1, validate=validate.Range(min=1))
    accompaniments = fields.List(
        fields.Nested(ChosenAccompanimentSchema), load_default=list)
    special_note = fields.Str(data_key="specialNote", allow_none=True, load_default=None)


class LocationSchema(BaseSchema):
    name = fields.Str(allow_none=True, load_default=None)
    # Numeric strings are coerced; anything else is rejected
    lat = fields.Float(allow_none=True, load_default=None)
    lon = fields.Float(allow_none=True, load_default=None)


class ScheduleSchema(BaseSchema):
    scheduled_time = fields.Str(data_key="scheduledTime", allow_none=True, load_default=None)
    scheduled_date = fields.Str(data_key="scheduledDate", allow_none=True, load_default=None)
    scheduled_for = fields.Str(data_key="scheduledFor", allow_none=True, load_default=None)


class OrderCreateSchema(BaseSchema):
    user_id = fields.Int(required=True, data_key="userId")
    user_name = fields.Str(required=True, data_key="userName", validate=NonEmpty)
    items = fields.List(
        fields.Nested(OrderItemSchema),
        required=True,
        validate=validate.Length(min=1, error="Order must contain at least one item.")
    )
    contact = fields.Str(allow_none=True, load_default=None)
    location = fields.Nested(LocationSchema, allow_none=True, load_default=None)
    delivery_method = fields.Str(
        data_key="deliveryMethod",
        allow_none=True,
        load_default="delivery",
        validate=validate.OneOf(["delivery", "pickup"])
    )
    schedule = fields.Nested(ScheduleSchema, allow_none=True, load_default=None)

    @post_load
    def default_delivery_method(self, data, **kwargs):
        if not data.get("delivery_method"):
            data["delivery_method"] = "delivery"
        return data


class OrderStatusUpdateSchema(BaseSchema):
    order_id = fields.Int(required=True, data_key="orderId")
    status_key = fields.Str(
        required=True,
        data_key="statusKey",
        validate=validate.OneOf(ORDER_STATUS_MARKERS, error="Invalid status field")
    )
    # Free-form marker: a label, a timestamp, or a falsy value to clear
    value = fields.Raw(allow_none=True, load_default=None)


class AssignRiderSchema(BaseSchema):
    order_id = fields.Int(required=True, data_key="orderId")
    rider_id = fields.Int(required=True, data_key="riderId")


class OrderReferenceSchema(BaseSchema):
    order_id = fields.Int(required=True, data_key="orderId")


# ---------------------------------------------------------------- reservations

class ReservationSchema(BaseSchema):
    number_of_tables = fields.Int(data_key="numberOfTables", allow_none=True)
    chairs_per_table = fields.Int(data_key="chairsPerTable", allow_none=True)
    reservation_date = fields.Str(required=True, data_key="reservationDate", validate=NonEmpty)
    reservation_time = fields.Str(required=True, data_key="reservationTime", validate=NonEmpty)
    whole_restaurant = fields.Bool(data_key="wholeRestaurant", load_default=False)
    customer_name = fields.Str(required=True, data_key="customerName", validate=NonEmpty)
    customer_email = fields.Str(
        required=True,
        data_key="customerEmail",
        validate=validate.Regexp(EMAIL_PATTERN, error="Invalid email format")
    )
    customer_phone = fields.Str(required=True, data_key="customerPhone", validate=NonEmpty)
    special_requests = fields.Str(data_key="specialRequests", allow_none=True, load_default="")
    user_id = fields.Int(data_key="userId", allow_none=True, load_default=None)

    @validates_schema
    def validate_slot_and_tables(self, data, **kwargs):
        errors = {}
        try:
            datetime.strptime(data.get("reservation_date", ""), "%Y-%m-%d")
        except ValueError:
            errors["reservationDate"] = ["Date must be in YYYY-MM-DD format."]
        try:
            datetime.strptime(data.get("reservation_time", ""), "%H:%M")
        except ValueError:
            errors["reservationTime"] = ["Time must be in HH:MM format."]

        if not data.get("whole_restaurant"):
            tables = data.get("number_of_tables")
            chairs = data.get("chairs_per_table")
            if tables is None or not 1 <= tables <= 4:
                errors["numberOfTables"] = ["Number of tables must be between 1 and 4."]
            if chairs is None or not 2 <= chairs <= 6:
                errors["chairsPerTable"] = ["Chairs per table must be between 2 and 6."]

        if errors:
            raise ValidationError(errors)

    @post_load
    def normalize_booking(self, data, **kwargs):
        # One spelling per slot so equal slots compare equal in storage
        data["reservation_date"] = datetime.strptime(
            data["reservation_date"], "%Y-%m-%d").strftime("%Y-%m-%d")
        data["reservation_time"] = datetime.strptime(
            data["reservation_time"], "%H:%M").strftime("%H:%M")
        data["customer_name"] = data["customer_name"].strip()
        data["customer_email"] = data["customer_email"].strip().lower()
        data["customer_phone"] = data["customer_phone"].strip()
        data["special_requests"] = (data.get("special_requests") or "").strip()
        return data


class ReservationStatusSchema(BaseSchema):
    reservation_id = fields.Int(required=True, data_key="reservationId")
    status = fields.Str(
        required=True,
        validate=validate.OneOf(RESERVATION_STATUSES, error="Invalid status")
    )
