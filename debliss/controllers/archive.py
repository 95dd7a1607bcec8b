from flask_smorest import Blueprint
from flask.views import MethodView

from debliss import db
from debliss.models import FinishedDelivery, RiderFinishedDelivery
from debliss.schemas import OrderReferenceSchema
from debliss.services.orders import serialize_with_items
from debliss.services.archive import complete_order
from debliss.services.helper import get_item_or_404, commit_or_abort


blp = Blueprint("Archive", __name__, description="Finished deliveries")


@blp.route("/user/mark-finished", methods=["POST"])
@blp.arguments(OrderReferenceSchema)
def mark_finished(data):
    """Customer confirms receipt; the order moves to the archive."""
    complete_order(data["order_id"])
    return {
        "success": True,
        "message": "Order moved to finished orders for user and rider.",
    }


@blp.route("/admin/finished-orders")
class FinishedOrders(MethodView):
    def get(self):
        deliveries = FinishedDelivery.query.order_by(
            FinishedDelivery.archived_at.desc(), FinishedDelivery.id.desc()).all()
        return serialize_with_items(deliveries, owner_fields=("name", "email", "phone"))


@blp.route("/admin/finished-orders/<int:delivery_id>")
class FinishedOrder(MethodView):
    def delete(self, delivery_id):
        delivery = get_item_or_404(FinishedDelivery, delivery_id, "Order")
        db.session.delete(delivery)
        commit_or_abort("Failed to delete finished order")
        return {"success": True}


@blp.route("/admin/rider-finished-deliveries")
class RiderFinishedDeliveries(MethodView):
    def get(self):
        deliveries = RiderFinishedDelivery.query.order_by(
            RiderFinishedDelivery.created_at.desc(), RiderFinishedDelivery.id.desc()).all()
        return serialize_with_items(deliveries)


@blp.route("/user-finished-orders/<int:user_id>")
class UserFinishedOrders(MethodView):
    def get(self, user_id):
        deliveries = FinishedDelivery.query.filter_by(user_id=user_id).order_by(
            FinishedDelivery.archived_at.desc(), FinishedDelivery.id.desc()).all()
        return serialize_with_items(deliveries)


@blp.route("/rider/finished-orders/<int:rider_id>")
class RiderFinishedOrders(MethodView):
    def get(self, rider_id):
        deliveries = RiderFinishedDelivery.query.filter_by(rider_id=rider_id).order_by(
            RiderFinishedDelivery.created_at.desc(), RiderFinishedDelivery.id.desc()).all()
        return serialize_with_items(deliveries)
