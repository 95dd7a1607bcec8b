from debliss import db
from debliss.models import Reservation
from debliss.services.helper import (
    current_time, restaurant_timezone, get_item_or_404, commit_or_abort
)

from flask_smorest import abort
from datetime import datetime, timedelta
import logging

logger = logging.getLogger(__name__)

# Guests assumed for a whole-restaurant booking
WHOLE_RESTAURANT_CAPACITY = 100
ACTIVE_STATUSES = ("pending", "confirmed")
CANCELLATION_CUTOFF = timedelta(hours=1)


class ReservationResources:

    def create_reservation(self, data):
        slot = self.slot_datetime(data["reservation_date"], data["reservation_time"])
        if slot <= current_time():
            abort(400, message="Reservation must be for a future date and time")

        whole_restaurant = bool(data.get("whole_restaurant"))
        if whole_restaurant:
            # No lock: two concurrent requests can both pass this check
            existing = Reservation.query.filter(
                Reservation.reservation_date == data["reservation_date"],
                Reservation.reservation_time == data["reservation_time"],
                Reservation.whole_restaurant.is_(True),
                Reservation.status.in_(ACTIVE_STATUSES)
            ).first()
            if existing:
                abort(409, message="Whole restaurant is already booked for this time slot")

            number_of_tables = chairs_per_table = 0
            total_guests = WHOLE_RESTAURANT_CAPACITY
        else:
            number_of_tables = data["number_of_tables"]
            chairs_per_table = data["chairs_per_table"]
            total_guests = number_of_tables * chairs_per_table

        reservation = Reservation(
            number_of_tables=number_of_tables,
            chairs_per_table=chairs_per_table,
            reservation_date=data["reservation_date"],
            reservation_time=data["reservation_time"],
            whole_restaurant=whole_restaurant,
            customer_name=data["customer_name"],
            customer_email=data["customer_email"],
            customer_phone=data["customer_phone"],
            special_requests=data.get("special_requests") or "",
            total_guests=total_guests,
            user_id=data.get("user_id"),
        )
        db.session.add(reservation)
        commit_or_abort("Failed to create reservation")

        logger.info(
            f"Reservation {reservation.id} created for {reservation.reservation_date} "
            f"{reservation.reservation_time}",
            extra={'event': 'reservation_created', 'reservation_id': reservation.id}
        )
        return reservation

    def slot_datetime(self, date_str, time_str):
        """Booked instant, localized to the restaurant's timezone."""
        naive = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M")
        return restaurant_timezone().localize(naive)

    def update_status(self, reservation_id, status):
        # Admin override: any status may follow any other
        reservation = get_item_or_404(Reservation, reservation_id, "Reservation")
        reservation.status = status
        commit_or_abort("Failed to update reservation status",
                        reservation_id=reservation_id)
        return reservation

    def cancel_reservation(self, reservation_id):
        reservation = get_item_or_404(Reservation, reservation_id, "Reservation")

        if reservation.status in ("completed", "cancelled"):
            abort(409, message="Cannot cancel a reservation that is already completed or cancelled")

        slot = self.slot_datetime(reservation.reservation_date, reservation.reservation_time)
        if current_time() >= slot - CANCELLATION_CUTOFF:
            abort(409, message="Cannot cancel reservation less than 1 hour before the scheduled time")

        reservation.status = "cancelled"
        commit_or_abort("Failed to cancel reservation", reservation_id=reservation_id)

        logger.info(f"Reservation {reservation_id} cancelled by customer", extra={
            'event': 'reservation_cancelled',
            'reservation_id': reservation_id
        })
        return reservation


reservation_resource_instance = ReservationResources()
