"""
SQLAlchemy Database Models

Relational model of the restaurant:
- Users (clients, staff, admins) with credentials and salary
- Menu items with an explicit availability lifecycle
- Orders owned by users, referencing menu items
- Reservations (on-site or delivery)

Records are never hard-deleted except reservations; every other "delete"
is a status transition.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Enum, ForeignKey, JSON
from sqlalchemy.orm import relationship

from restomatch.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    """Access level of an account."""
    CLIENT = "client"
    STAFF = "staff"
    ADMIN = "admin"


STAFF_ROLES = frozenset({UserRole.STAFF, UserRole.ADMIN})


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class MenuCategory(str, enum.Enum):
    """Menu sections."""
    ENTREES = "Entrées"
    PLATS = "Plats"
    DESSERTS = "Desserts"
    BOISSONS = "Boissons"


class MenuItemStatus(str, enum.Enum):
    """Availability lifecycle of a menu item. Withdrawn is the soft-deleted state."""
    AVAILABLE = "available"
    WITHDRAWN = "withdrawn"


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Statuses from which a client may still cancel their own order
CLIENT_CANCELLABLE = frozenset({OrderStatus.PENDING})


class ReservationType(str, enum.Enum):
    """On-site table booking or home delivery."""
    SUR_PLACE = "surPlace"
    LIVRAISON = "livraison"


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class User(Base):
    """
    Account table - credentials, role and payroll data.

    Salary is only meaningful (and required) for staff and admin accounts.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), default=UserRole.CLIENT, nullable=False, index=True)
    salary = Column(Float, nullable=True)
    status = Column(Enum(UserStatus), default=UserStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    orders = relationship("Order", back_populates="user")

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __repr__(self):
        return f"<User #{self.id} - {self.email} - {self.role.value}>"


class MenuItem(Base):
    """Dish or drink on the menu."""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    category = Column(Enum(MenuCategory), nullable=False, index=True)
    image = Column(Text, nullable=False)
    status = Column(
        Enum(MenuItemStatus),
        default=MenuItemStatus.AVAILABLE,
        nullable=False,
        index=True
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def available(self) -> bool:
        return self.status == MenuItemStatus.AVAILABLE

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} - {self.status.value}>"


class Order(Base):
    """
    Customer order.

    Line items reference menu items by id without cascade, so an order keeps
    pointing at items that were later withdrawn.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Float, nullable=False)
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="orders", lazy="selectin")
    items = relationship(
        "OrderItem",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order #{self.id} - user {self.user_id} - {self.status.value}>"


class OrderItem(Base):
    """One line of an order. Position keeps the order the client sent."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    menu_item = relationship("MenuItem", lazy="selectin")


class Reservation(Base):
    """
    Table booking or delivery request.

    number_of_people is set for on-site bookings, address for deliveries.
    Dishes are stored as a JSON snapshot of {itemRef, name, price, quantity}.
    """
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    date = Column(String(10), nullable=False, index=True)
    time = Column(String(5), nullable=False)
    reservation_type = Column("type", Enum(ReservationType), nullable=False)
    number_of_people = Column(Integer, nullable=True)
    address = Column(String(255), nullable=True)
    special_requests = Column(Text, nullable=True)
    dishes = Column(JSON, nullable=False, default=list)
    total_amount = Column(Float, nullable=False, default=0.0)
    status = Column(
        Enum(ReservationStatus),
        default=ReservationStatus.PENDING,
        nullable=False,
        index=True
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Reservation #{self.id} - {self.name} - {self.date} {self.time} - {self.status.value}>"
