from flask_smorest import Blueprint
from flask.views import MethodView

from debliss.models import Reservation
from debliss.schemas import ReservationSchema, ReservationStatusSchema
from debliss.services.reservations import reservation_resource_instance
from debliss.services.helper import get_item_or_404


blp = Blueprint("Reservations", __name__, description="Table reservations")


def with_user(reservation):
    data = reservation.to_dict()
    data["user"] = reservation.user.to_summary("name", "email") if reservation.user else None
    return data


@blp.route("/reservation")
class CreateReservation(MethodView):
    @blp.arguments(ReservationSchema)
    def post(self, reservation_data):
        """Book tables, or the whole restaurant, for a future slot."""
        reservation = reservation_resource_instance.create_reservation(reservation_data)
        return {
            "success": True,
            "message": "Reservation created successfully",
            "reservationId": reservation.id,
            "reservation": reservation.to_public_dict(),
        }


@blp.route("/reservation/<int:reservation_id>")
class ReservationDetail(MethodView):
    def get(self, reservation_id):
        reservation = get_item_or_404(Reservation, reservation_id, "Reservation")
        return {"success": True, "reservation": with_user(reservation)}


@blp.route("/reservation/<int:reservation_id>/cancel")
class CancelReservation(MethodView):
    def patch(self, reservation_id):
        """Customer cancellation; closes one hour before the booked time."""
        reservation = reservation_resource_instance.cancel_reservation(reservation_id)
        return {
            "success": True,
            "message": "Reservation cancelled successfully",
            "reservation": reservation.to_dict(),
        }


@blp.route("/admin/reservations")
class AdminReservations(MethodView):
    def get(self):
        reservations = Reservation.query.order_by(
            Reservation.created_at.desc(), Reservation.id.desc()).all()
        return {"success": True, "reservations": [with_user(r) for r in reservations]}


@blp.route("/user/reservations/<int:user_id>")
class UserReservations(MethodView):
    def get(self, user_id):
        reservations = Reservation.query.filter_by(user_id=user_id).order_by(
            Reservation.created_at.desc(), Reservation.id.desc()).all()
        return {"success": True, "reservations": [r.to_dict() for r in reservations]}


@blp.route("/admin/reservation-status", methods=["POST"])
@blp.arguments(ReservationStatusSchema)
def update_reservation_status(data):
    reservation = reservation_resource_instance.update_status(
        data["reservation_id"], data["status"])
    return {
        "success": True,
        "message": "Reservation status updated successfully",
        "reservation": reservation.to_dict(),
    }
