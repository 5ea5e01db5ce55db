"""
Pydantic Schemas for Request/Response Serialization

Field-level request rules live with the routes (see restomatch.validation);
these schemas coerce an already-validated payload into typed values and
shape every response. JSON uses camelCase keys, Python uses snake_case.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from restomatch.models import (
    MenuCategory,
    OrderStatus,
    ReservationStatus,
    ReservationType,
    UserRole,
    UserStatus,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# AUTH & USERS
# =============================================================================

class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str


class LoginRequest(CamelModel):
    email: str
    password: str


class UserSummary(CamelModel):
    """Public identity returned with a token."""
    id: int
    name: str
    email: str
    role: UserRole


class UserResponse(UserSummary):
    """Full profile. Never carries the password hash."""
    salary: Optional[float] = None
    status: UserStatus
    created_at: datetime


class AuthResponse(CamelModel):
    token: str
    user: UserSummary


class StaffCreate(CamelModel):
    name: str
    email: str
    password: str
    role: UserRole
    salary: float


class StaffUpdate(CamelModel):
    salary: float
    name: Optional[str] = None


class RoleUpdate(CamelModel):
    role: UserRole
    salary: Optional[float] = None


class RoleUpdateResponse(CamelModel):
    msg: str
    user: UserResponse


# =============================================================================
# MENU
# =============================================================================

class MenuItemCreate(CamelModel):
    name: str
    description: str
    price: float
    category: MenuCategory
    image: str
    available: bool = True


class MenuItemUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[MenuCategory] = None
    image: Optional[str] = None
    available: Optional[bool] = None


class MenuItemResponse(CamelModel):
    id: int
    name: str
    description: str
    price: float
    category: MenuCategory
    image: str
    available: bool
    created_at: datetime


# =============================================================================
# ORDERS
# =============================================================================

class OrderItemCreate(CamelModel):
    menu_item: int
    quantity: int


class OrderCreate(CamelModel):
    items: List[OrderItemCreate]
    total_amount: float


class OrderStatusUpdate(CamelModel):
    status: OrderStatus


class OrderOwner(CamelModel):
    id: int
    name: str
    email: str


class OrderItemResponse(CamelModel):
    menu_item_id: int
    quantity: int
    menu_item: Optional[MenuItemResponse] = None


class OrderResponse(CamelModel):
    id: int
    user: Optional[OrderOwner] = None
    items: List[OrderItemResponse]
    total_amount: float
    status: OrderStatus
    created_at: datetime


# =============================================================================
# RESERVATIONS
# =============================================================================

class ReservationDish(CamelModel):
    """Snapshot of a dish as the client saw it when booking."""
    item_ref: Optional[Union[int, str]] = None
    name: str
    price: float
    quantity: int


class ReservationCreate(CamelModel):
    name: str
    email: str
    phone: str
    date: str
    time: str
    reservation_type: ReservationType = Field(alias="type")
    number_of_people: Optional[int] = None
    address: Optional[str] = None
    special_requests: Optional[str] = None
    dishes: List[ReservationDish] = Field(default_factory=list)
    total_amount: float


class ReservationStatusUpdate(CamelModel):
    status: ReservationStatus


class ReservationResponse(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    date: str
    time: str
    reservation_type: ReservationType = Field(alias="type")
    number_of_people: Optional[int] = None
    address: Optional[str] = None
    special_requests: Optional[str] = None
    dishes: List[ReservationDish]
    total_amount: float
    status: ReservationStatus
    created_at: datetime


# =============================================================================
# STATISTICS
# =============================================================================

class StatBlock(CamelModel):
    total: float
    change: float


class AdminStatsResponse(CamelModel):
    revenue: StatBlock
    orders: StatBlock
    customers: StatBlock
    reservations: StatBlock


class DailyRevenue(CamelModel):
    date: str
    total: float


class DailyOrderCount(CamelModel):
    date: str
    count: int


class MenuStats(CamelModel):
    total_items: int


class OrderStats(CamelModel):
    total: int
    pending: int
    preparing: int


class ReservationStats(CamelModel):
    total: int
    pending: int
    today: int


class StaffStats(CamelModel):
    total_staff: int
    total_admin: int
    average_salary: float


# =============================================================================
# MISC
# =============================================================================

class MessageResponse(CamelModel):
    msg: str


class HealthResponse(CamelModel):
    status: str
    database: str
    timestamp: datetime
