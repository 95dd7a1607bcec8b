from debliss import db
from debliss.models import Order, FinishedDelivery, RiderFinishedDelivery
from debliss.services.helper import utcnow
from debliss.middleware.utils import log_function_call

from flask import current_app
from flask_smorest import abort
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from datetime import timedelta
import logging

logger = logging.getLogger(__name__)


def complete_order(order_id):
    """Archive a received order and remove it from the active orders.

    Both snapshots and the delete are committed together; on any storage
    failure nothing is written and the order stays active.
    """
    order = Order.query.options(
        joinedload(Order.user),
        joinedload(Order.rider)
    ).filter(Order.id == order_id).first()
    if not order:
        abort(404, message="Order not found")

    user_name = order.user.name if order.user else order.user_name
    address = (order.location or {}).get("name")

    finished = FinishedDelivery(
        user_id=order.user_id,
        user_name=user_name,
        rider_id=order.rider_id,
        contact=order.contact,
        address=address,
        location=order.location,
        items=order.items,
        pending=order.pending,
        confirmed=order.confirmed,
        preparing=order.preparing,
        packing=order.packing,
        out_for_delivery=order.out_for_delivery,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )
    db.session.add(finished)

    rider_finished = None
    if order.rider_id:
        rider_finished = RiderFinishedDelivery(
            user_id=order.user_id,
            user_name=user_name,
            rider_id=order.rider_id,
            contact=order.contact,
            address=address,
            items=order.items,
        )
        db.session.add(rider_finished)

    db.session.delete(order)

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to archive order {order_id}: {e}", extra={
            'event': 'archive_failed',
            'order_id': order_id
        })
        abort(500, message="Failed to move order to finished")

    logger.info(f"Order {order_id} moved to finished deliveries", extra={
        'event': 'order_archived',
        'order_id': order_id
    })
    return finished, rider_finished


@log_function_call
def purge_expired_deliveries(retention_days=None, now=None):
    """Delete archived deliveries created before the retention cutoff.

    Returns the deleted counts, or None when the sweep failed.
    """
    if retention_days is None:
        retention_days = current_app.config.get("FINISHED_RETENTION_DAYS", 7)
    cutoff = (now or utcnow()) - timedelta(days=retention_days)

    try:
        finished = FinishedDelivery.query.filter(
            FinishedDelivery.created_at < cutoff
        ).delete(synchronize_session=False)
        rider = RiderFinishedDelivery.query.filter(
            RiderFinishedDelivery.created_at < cutoff
        ).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Finished Orders Cleanup Error: {e}", extra={
            'event': 'cleanup_failed'
        })
        return None

    logger.info(
        f"Finished Orders Cleanup: Deleted {finished} finished orders and "
        f"{rider} rider deliveries older than {retention_days} days",
        extra={
            'event': 'cleanup_completed',
            'deleted': {"finished": finished, "rider": rider}
        }
    )
    return {"finished": finished, "rider": rider}
