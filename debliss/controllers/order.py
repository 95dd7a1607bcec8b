from flask_smorest import Blueprint, abort
from flask.views import MethodView

from debliss.models import Order
from debliss.schemas import (
    OrderCreateSchema, OrderStatusUpdateSchema,
    AssignRiderSchema
)
from debliss.services.orders import order_resource_instance, serialize_with_items
import json


blp = Blueprint("Orders", __name__, description="Order placement and lifecycle")


@blp.route("/order")
class PlaceOrder(MethodView):
    @blp.arguments(OrderCreateSchema)
    def post(self, order_data):
        """Place an order; it starts pending (or scheduled)."""
        order = order_resource_instance.create_order(order_data)
        return {"success": True, "order": order.to_dict()}


@blp.route("/user-orders/<int:user_id>")
class UserOrders(MethodView):
    def get(self, user_id):
        orders = Order.query.filter_by(user_id=user_id).order_by(
            Order.created_at.desc(), Order.id.desc()).all()
        return serialize_with_items(orders)


@blp.route("/user/order/<int:order_id>")
class OrderDetail(MethodView):
    def get(self, order_id):
        """Single active order, polled by the client for progress."""
        order = Order.query.filter_by(id=order_id).first()
        if not order:
            abort(404, message="Order not found")
        return serialize_with_items([order])[0]


@blp.route("/admin/orders")
class AdminOrders(MethodView):
    def get(self):
        orders = Order.query.order_by(Order.created_at.desc(), Order.id.desc()).all()
        return serialize_with_items(orders, owner_fields=("name", "email", "phone"))


@blp.route("/rider/current-orders/<int:rider_id>")
class RiderCurrentOrders(MethodView):
    def get(self, rider_id):
        orders = Order.query.filter_by(rider_id=rider_id).order_by(
            Order.created_at, Order.id).all()
        return serialize_with_items(orders)


@blp.route("/admin/order-status", methods=["POST"])
@blp.arguments(OrderStatusUpdateSchema)
def update_order_status(data):
    order_resource_instance.update_status(
        data["order_id"], data["status_key"], data.get("value"))
    value = data.get("value")
    shown = value if isinstance(value, str) else json.dumps(value)
    return {"success": True, "message": f'Updated {data["status_key"]} to "{shown}"'}


@blp.route("/admin/assign-rider", methods=["POST"])
@blp.arguments(AssignRiderSchema)
def assign_rider(data):
    order = order_resource_instance.assign_rider(data["order_id"], data["rider_id"])
    return {"success": True, "order": order.to_dict()}


@blp.route("/admin/cancel-order/<int:order_id>", methods=["DELETE"])
def admin_cancel_order(order_id):
    order_resource_instance.cancel_order(order_id, actor="admin")
    return {"success": True, "message": "Order cancelled successfully"}


@blp.route("/user/cancel-order/<int:order_id>", methods=["DELETE"])
def user_cancel_order(order_id):
    order_resource_instance.cancel_order(order_id, actor="user")
    return {"success": True, "message": "Order cancelled successfully"}
