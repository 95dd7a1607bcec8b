from debliss import db
from datetime import datetime
import enum


ORDER_STATUS_MARKERS = ("confirmed", "preparing", "packing", "outForDelivery")


class OrderStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    PACKING = "packing"
    OUT_FOR_DELIVERY = "out_for_delivery"

    @property
    def rank(self):
        return list(OrderStatus).index(self)

    @property
    def marker(self):
        """Name of the order column holding this stage's marker."""
        return MARKER_BY_STATUS[self]


MARKER_BY_STATUS = {
    OrderStatus.PENDING: "pending",
    OrderStatus.CONFIRMED: "confirmed",
    OrderStatus.PREPARING: "preparing",
    OrderStatus.PACKING: "packing",
    OrderStatus.OUT_FOR_DELIVERY: "outForDelivery",
}
STATUS_BY_MARKER = {marker: status for status, marker in MARKER_BY_STATUS.items()}

# Python attribute for each camelCase marker key
MARKER_ATTRS = {
    "pending": "pending",
    "confirmed": "confirmed",
    "preparing": "preparing",
    "packing": "packing",
    "outForDelivery": "out_for_delivery",
}


def _iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    password = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(20), nullable=False,
                     default='user')  # 'user', 'admin' or 'rider'
    reset_token = db.Column(db.String(10), nullable=True)
    reset_token_expires = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
        }

    def to_summary(self, *fields):
        data = self.to_dict()
        return {key: data[key] for key in ("id",) + fields}


class Accompaniment(db.Model):
    __tablename__ = 'accompaniment'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Float, nullable=False, default=0.0)
    category = db.Column(db.String(20), nullable=False)  # soup, sauce, stew, protein, extra
    available = db.Column(db.Boolean, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "available": self.available,
        }


class MenuItem(db.Model):
    __tablename__ = 'menu_item'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    price = db.Column(db.Float, nullable=False)
    category = db.Column(db.String(100), nullable=False)
    available = db.Column(db.Boolean, default=True)
    image = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, default="")
    # Ordered accompaniment ids; empty means none offered
    allowed_accompaniments = db.Column(db.JSON, default=list)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "available": self.available,
            "image": self.image,
            "description": self.description,
            "allowedAccompaniments": list(self.allowed_accompaniments or []),
        }


class Order(db.Model):
    __tablename__ = 'customer_order'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    user_name = db.Column(db.String(100), nullable=False)
    # [{menuItem, quantity, accompaniments: [{name, price}], specialNote}]
    items = db.Column(db.JSON, nullable=False, default=list)
    contact = db.Column(db.String(50), nullable=True)
    location = db.Column(db.JSON, nullable=True)  # {name, lat, lon}
    delivery_method = db.Column(
        db.Enum('delivery', 'pickup', name='delivery_method_enum'),
        nullable=False,
        default='delivery'
    )
    schedule = db.Column(db.JSON, nullable=False)
    rider_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)

    status = db.Column(db.Enum(OrderStatus), nullable=False,
                       default=OrderStatus.PENDING)
    pending = db.Column(db.String(255), nullable=True)
    confirmed = db.Column(db.String(255), nullable=True)
    preparing = db.Column(db.String(255), nullable=True)
    packing = db.Column(db.String(255), nullable=True)
    out_for_delivery = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", foreign_keys=[user_id])
    rider = db.relationship("User", foreign_keys=[rider_id])
    history = db.relationship(
        "OrderStatusHistory",
        backref="order",
        order_by="OrderStatusHistory.id",
        cascade="all, delete-orphan"
    )

    def get_marker(self, key):
        return getattr(self, MARKER_ATTRS[key])

    def set_marker(self, key, value):
        setattr(self, MARKER_ATTRS[key], value)

    def markers(self):
        return {key: self.get_marker(key) for key in MARKER_ATTRS}

    def record_transition(self, status, marker, value):
        """Move to ``status`` and append one history entry."""
        self.status = status
        self.history.append(OrderStatusHistory(
            status=status,
            marker=marker,
            value=value
        ))

    def to_dict(self):
        data = {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "items": self.items,
            "contact": self.contact,
            "location": self.location,
            "deliveryMethod": self.delivery_method,
            "schedule": self.schedule,
            "riderId": self.rider_id,
            "status": self.status.value,
            "history": [entry.to_dict() for entry in self.history],
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        data.update(self.markers())
        return data


class OrderStatusHistory(db.Model):
    __tablename__ = 'order_status_history'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey(
        'customer_order.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.Enum(OrderStatus), nullable=False)
    marker = db.Column(db.String(20), nullable=False)
    value = db.Column(db.String(255), nullable=True)
    at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "status": self.status.value,
            "marker": self.marker,
            "value": self.value,
            "at": _iso(self.at),
        }


class FinishedDelivery(db.Model):
    __tablename__ = 'finished_delivery'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    user_name = db.Column(db.String(100), nullable=False)
    rider_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    contact = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    location = db.Column(db.JSON, nullable=True)
    items = db.Column(db.JSON, nullable=False, default=list)
    pending = db.Column(db.String(255), nullable=True)
    confirmed = db.Column(db.String(255), nullable=True)
    preparing = db.Column(db.String(255), nullable=True)
    packing = db.Column(db.String(255), nullable=True)
    out_for_delivery = db.Column(db.String(255), nullable=True)

    # Copied from the order; the retention window is measured from here
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)
    archived_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", foreign_keys=[user_id])
    rider = db.relationship("User", foreign_keys=[rider_id])

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "riderId": self.rider_id,
            "contact": self.contact,
            "address": self.address,
            "location": self.location,
            "items": self.items,
            "pending": self.pending,
            "confirmed": self.confirmed,
            "preparing": self.preparing,
            "packing": self.packing,
            "outForDelivery": self.out_for_delivery,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
            "archivedAt": _iso(self.archived_at),
        }


class RiderFinishedDelivery(db.Model):
    __tablename__ = 'rider_finished_delivery'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    user_name = db.Column(db.String(100), nullable=False)
    rider_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    contact = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    items = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship("User", foreign_keys=[user_id])
    rider = db.relationship("User", foreign_keys=[rider_id])

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "riderId": self.rider_id,
            "contact": self.contact,
            "address": self.address,
            "items": self.items,
            "createdAt": _iso(self.created_at),
        }


class Reservation(db.Model):
    __tablename__ = 'reservation'
    __table_args__ = (
        db.Index('ix_reservation_slot', 'reservation_date', 'reservation_time'),
    )

    id = db.Column(db.Integer, primary_key=True)
    number_of_tables = db.Column(db.Integer, nullable=False)
    chairs_per_table = db.Column(db.Integer, nullable=False)
    reservation_date = db.Column(db.String(10), nullable=False)  # "2025-12-25"
    reservation_time = db.Column(db.String(5), nullable=False)  # "19:00"
    whole_restaurant = db.Column(db.Boolean, default=False, nullable=False)
    customer_name = db.Column(db.String(100), nullable=False)
    customer_email = db.Column(db.String(120), nullable=False, index=True)
    customer_phone = db.Column(db.String(20), nullable=False)
    special_requests = db.Column(db.Text, default="")
    status = db.Column(
        db.Enum('pending', 'confirmed', 'cancelled',
                'completed', name='reservation_status_enum'),
        nullable=False,
        default="pending",
        index=True
    )
    total_guests = db.Column(db.Integer, nullable=False)
    # Null for customers without an account
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", backref="reservations")

    def to_dict(self):
        return {
            "id": self.id,
            "numberOfTables": self.number_of_tables,
            "chairsPerTable": self.chairs_per_table,
            "reservationDate": self.reservation_date,
            "reservationTime": self.reservation_time,
            "wholeRestaurant": self.whole_restaurant,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "specialRequests": self.special_requests,
            "status": self.status,
            "totalGuests": self.total_guests,
            "userId": self.user_id,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def to_public_dict(self):
        """Projection returned right after booking."""
        return {
            "id": self.id,
            "numberOfTables": self.number_of_tables,
            "chairsPerTable": self.chairs_per_table,
            "reservationDate": self.reservation_date,
            "reservationTime": self.reservation_time,
            "wholeRestaurant": self.whole_restaurant,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "totalGuests": self.total_guests,
            "status": self.status,
            "createdAt": _iso(self.created_at),
        }
