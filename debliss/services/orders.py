from debliss import db
from debliss.models import (
    Order, OrderStatus, MenuItem, Accompaniment, User,
    STATUS_BY_MARKER
)
from debliss.services.helper import utcnow, get_item_or_404, commit_or_abort
from debliss.services.email import send_email_quietly

from flask_smorest import abort
from sqlalchemy.orm import joinedload
import json
import logging

logger = logging.getLogger(__name__)

PENDING_CONFIRMATION = "⌛ Pending Confirmation"
SCHEDULED_FOR = "⏰ Scheduled for {}"


def normalize_schedule(schedule):
    """Scheduled only when both the time and the date are given."""
    schedule = schedule or {}
    if schedule.get("scheduled_time") and schedule.get("scheduled_date"):
        return {
            "scheduledTime": schedule["scheduled_time"],
            "scheduledDate": schedule["scheduled_date"],
            "scheduledFor": schedule.get("scheduled_for"),
            "isScheduled": True,
        }
    return {
        "scheduledTime": None,
        "scheduledDate": None,
        "scheduledFor": None,
        "isScheduled": False,
    }


def pending_marker(schedule):
    if schedule["isScheduled"]:
        label = schedule["scheduledFor"] or \
            f"{schedule['scheduledDate']} {schedule['scheduledTime']}"
        return SCHEDULED_FOR.format(label)
    return PENDING_CONFIRMATION


def marker_value(value):
    """Normalize a free-form status value; None means "clear the marker"."""
    if value is None or value is False or value == "":
        return None
    if value is True:
        return "true"
    if isinstance(value, str):
        return value
    return json.dumps(value)


def serialize_with_items(records, owner_fields=("name",), rider_fields=("name", "phone")):
    """Serialize orders or archived deliveries with menu items, owner and rider populated."""
    menu_ids = {
        entry.get("menuItem")
        for record in records
        for entry in (record.items or [])
    }
    menu = {}
    if menu_ids:
        menu = {
            item.id: item.to_dict()
            for item in MenuItem.query.filter(MenuItem.id.in_(menu_ids)).all()
        }

    result = []
    for record in records:
        data = record.to_dict()
        data["items"] = [
            {**entry, "menuItem": menu.get(entry.get("menuItem"))}
            for entry in (record.items or [])
        ]
        data["user"] = record.user.to_summary(*owner_fields) if record.user else None
        data["rider"] = record.rider.to_summary(*rider_fields) if record.rider else None
        result.append(data)
    return result


class OrderResources:

    def create_order(self, data):
        user = get_item_or_404(User, data["user_id"], "User")

        items = self.snapshot_items(data["items"])
        schedule = normalize_schedule(data.get("schedule"))
        pending = pending_marker(schedule)

        order = Order(
            user_id=user.id,
            user_name=data["user_name"],
            items=items,
            contact=data.get("contact"),
            location=data.get("location"),
            delivery_method=data.get("delivery_method") or "delivery",
            schedule=schedule,
            pending=pending,
            confirmed=None,
            preparing=None,
            packing=None,
            out_for_delivery=None,
        )
        order.record_transition(OrderStatus.PENDING, "pending", pending)

        db.session.add(order)
        commit_or_abort("Order failed", user_id=user.id)

        logger.info(f"Order {order.id} placed by user {user.id}", extra={
            'event': 'order_created',
            'order_id': order.id
        })
        return order

    def snapshot_items(self, entries):
        """Resolve menu items and price the chosen accompaniments from the catalog."""
        menu_ids = {entry["menu_item"] for entry in entries}
        menu = {
            item.id: item
            for item in MenuItem.query.filter(MenuItem.id.in_(menu_ids)).all()
        }

        allowed_ids = {
            acc_id
            for item in menu.values()
            for acc_id in (item.allowed_accompaniments or [])
        }
        accompaniments = {}
        if allowed_ids:
            accompaniments = {
                acc.id: acc
                for acc in Accompaniment.query.filter(
                    Accompaniment.id.in_(allowed_ids),
                    Accompaniment.available.isnot(False)
                ).all()
            }

        snapshot = []
        for entry in entries:
            item = menu.get(entry["menu_item"])
            if not item or not item.available:
                abort(400, message=f"Menu item {entry['menu_item']} is not available.")

            offered = {
                accompaniments[acc_id].name.lower(): accompaniments[acc_id]
                for acc_id in (item.allowed_accompaniments or [])
                if acc_id in accompaniments
            }
            chosen = []
            for choice in entry.get("accompaniments") or []:
                accompaniment = offered.get(choice["name"].lower())
                if not accompaniment:
                    abort(400, message=f"{choice['name']} is not offered with {item.name}.")
                chosen.append({"name": accompaniment.name, "price": accompaniment.price})

            snapshot.append({
                "menuItem": item.id,
                "quantity": entry["quantity"],
                "accompaniments": chosen,
                "specialNote": entry.get("special_note"),
            })
        return snapshot

    def update_status(self, order_id, status_key, value):
        order = Order.query.options(joinedload(Order.user)).filter(
            Order.id == order_id).first()
        if not order:
            abort(404, message="Order not found")

        new_value = marker_value(value)
        target = STATUS_BY_MARKER[status_key]
        current = order.status

        if new_value is not None:
            if target.rank < current.rank:
                abort(409, message=f"Order is already {current.value}; cannot set {status_key} again.")
            order.set_marker(status_key, new_value)
            if target.rank > current.rank:
                order.record_transition(target, status_key, new_value)
        else:
            if target != current:
                abort(409, message=f"Only the current stage ({current.value}) can be cleared.")
            order.set_marker(status_key, None)
            # A rider is assigned exactly while the order is out for delivery
            if target == OrderStatus.OUT_FOR_DELIVERY:
                order.rider_id = None
            order.record_transition(self.previous_stage(order, target), status_key, None)

        commit_or_abort("Failed to update order status", order_id=order.id)

        logger.info(f"Order {order.id}: {status_key} -> {new_value}", extra={
            'event': 'order_status_updated',
            'order_id': order.id
        })

        self.notify_status_change(order, status_key, new_value)
        return order

    @staticmethod
    def previous_stage(order, stage):
        for status in reversed(list(OrderStatus)[:stage.rank]):
            if order.get_marker(status.marker):
                return status
        return OrderStatus.PENDING

    def notify_status_change(self, order, status_key, value):
        """Best-effort customer emails for confirmation and dispatch."""
        if not value or not order.user or not order.user.email:
            return

        if status_key == "confirmed":
            send_email_quietly(
                order.user.email,
                "🎉 Order Confirmed - DE BLISS is preparing your meal!",
                "email/order_confirmed.html",
                order=order,
                items=serialize_with_items([order])[0]["items"]
            )
        elif status_key == "outForDelivery" and order.delivery_method == "delivery":
            send_email_quietly(
                order.user.email,
                "🚗 Your Order is Out for Delivery - DE BLISS",
                "email/out_for_delivery.html",
                order=order
            )

    def assign_rider(self, order_id, rider_id):
        order = get_item_or_404(Order, order_id, "Order")
        rider = User.query.filter_by(id=rider_id, role="rider").first()
        if not rider:
            abort(404, message="Rider not found")

        # Assignment is the out-for-delivery transition
        stamp = utcnow().isoformat()
        order.rider_id = rider.id
        order.out_for_delivery = stamp
        if order.status != OrderStatus.OUT_FOR_DELIVERY:
            order.record_transition(OrderStatus.OUT_FOR_DELIVERY, "outForDelivery", stamp)

        commit_or_abort("Failed to assign rider", order_id=order.id)

        logger.info(f"Rider {rider.id} assigned to order {order.id}", extra={
            'event': 'rider_assigned',
            'order_id': order.id
        })
        return order

    def cancel_order(self, order_id, actor):
        order = get_item_or_404(Order, order_id, "Order")

        if order.confirmed:
            abort(409, message="Cannot cancel order that has already been confirmed")

        db.session.delete(order)
        commit_or_abort("Failed to cancel order", order_id=order_id)

        logger.info(f"Order {order_id} cancelled by {actor}", extra={
            'event': 'order_cancelled',
            'order_id': order_id
        })


order_resource_instance = OrderResources()
