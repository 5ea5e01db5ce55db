"""
Order Endpoints

Every route needs a token. Clients see and cancel only their own orders;
staff and admins see everything and drive the status workflow.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from restomatch.core.errors import BadRequest, FieldError, Forbidden, NotFound, ValidationFailed, parse_id
from restomatch.core.security import Claims
from restomatch.database import get_db
from restomatch.dependencies import get_current_claims, require_staff
from restomatch.models import (
    CLIENT_CANCELLABLE,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    STAFF_ROLES,
)
from restomatch.schemas import (
    MessageResponse,
    OrderCreate,
    OrderResponse,
    OrderStats,
    OrderStatusUpdate,
)
from restomatch.validation import IsArray, NumberRange, OneOf, validated_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

ORDER_NOT_FOUND = "Order not found"

CREATE_RULES = [
    IsArray("items", "At least one item is required", min_length=1),
    NumberRange("items.*.menuItem", "A valid menu item id is required", min=1, integer=True),
    NumberRange("items.*.quantity", "Quantity must be at least 1", min=1, integer=True),
    NumberRange("totalAmount", "Total amount must be zero or more", min=0),
]

STATUS_RULES = [
    OneOf("status", OrderStatus, "Status must be one of: " + ", ".join(s.value for s in OrderStatus)),
]


async def _load_order(db: AsyncSession, order_id: int) -> Optional[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _can_see(claims: Claims, order: Order) -> bool:
    return claims.role in STAFF_ROLES or order.user_id == claims.user_id


@router.post("", response_model=OrderResponse)
async def create_order(
    claims: Claims = Depends(get_current_claims),
    body: OrderCreate = Depends(validated_body(CREATE_RULES, OrderCreate)),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """Place an order for the caller. Totals are taken as sent."""
    ids = {line.menu_item for line in body.items}
    result = await db.execute(select(MenuItem).where(MenuItem.id.in_(list(ids))))
    menu = {item.id: item for item in result.scalars().all()}

    errors = []
    for index, line in enumerate(body.items):
        item = menu.get(line.menu_item)
        if item is None:
            errors.append(FieldError(f"items.{index}.menuItem", "Unknown menu item", line.menu_item))
        elif not item.available:
            errors.append(FieldError(f"items.{index}.menuItem", "Menu item is not available", line.menu_item))
    if errors:
        raise ValidationFailed(errors)

    order = Order(
        user_id=claims.user_id,
        total_amount=body.total_amount,
        status=OrderStatus.PENDING,
        items=[
            OrderItem(menu_item_id=line.menu_item, quantity=line.quantity, position=index)
            for index, line in enumerate(body.items)
        ],
    )
    db.add(order)
    await db.commit()

    logger.info(f"Order #{order.id} created by user #{claims.user_id} ({len(body.items)} lines, {order.total_amount:.2f})")
    return OrderResponse.model_validate(await _load_order(db, order.id))


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    claims: Claims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
) -> list[OrderResponse]:
    """All orders for staff and admins, the caller's own orders otherwise. Newest first."""
    query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    if claims.role not in STAFF_ROLES:
        query = query.where(Order.user_id == claims.user_id)

    result = await db.execute(query)
    return [OrderResponse.model_validate(order) for order in result.scalars().all()]


@router.get("/stats", response_model=OrderStats)
async def order_stats(
    claims: Claims = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> OrderStats:
    result = await db.execute(select(Order.status, func.count(Order.id)).group_by(Order.status))
    counts = {status: count for status, count in result.all()}
    return OrderStats(
        total=sum(counts.values()),
        pending=counts.get(OrderStatus.PENDING, 0),
        preparing=counts.get(OrderStatus.PREPARING, 0),
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    claims: Claims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await _load_order(db, parse_id(order_id, ORDER_NOT_FOUND))
    if not order:
        raise NotFound(ORDER_NOT_FOUND)
    if not _can_see(claims, order):
        raise Forbidden("Not authorized")
    return OrderResponse.model_validate(order)


@router.put("/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    claims: Claims = Depends(require_staff),
    body: OrderStatusUpdate = Depends(validated_body(STATUS_RULES, OrderStatusUpdate)),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """
    Overwrite the order status.

    Any status may follow any other; the workflow is enforced by staff,
    not by the API.
    """
    target = parse_id(order_id, ORDER_NOT_FOUND)
    result = await db.execute(update(Order).where(Order.id == target).values(status=body.status))
    if result.rowcount == 0:
        raise NotFound(ORDER_NOT_FOUND)
    await db.commit()

    logger.info(f"Order #{target} -> {body.status.value} by user #{claims.user_id}")
    return OrderResponse.model_validate(await _load_order(db, target))


@router.delete("/{order_id}", response_model=MessageResponse)
async def cancel_order(
    order_id: str,
    claims: Claims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Cancel an order instead of deleting it.

    Clients may cancel their own orders while still pending; staff and
    admins may cancel any order.
    """
    target = parse_id(order_id, ORDER_NOT_FOUND)
    order = await _load_order(db, target)
    if not order:
        raise NotFound(ORDER_NOT_FOUND)
    if not _can_see(claims, order):
        raise Forbidden("Not authorized")

    query = update(Order).where(Order.id == target)
    if claims.role not in STAFF_ROLES:
        if order.status not in CLIENT_CANCELLABLE:
            raise BadRequest("Order can no longer be cancelled")
        # Guard against a status change racing this request
        query = query.where(Order.status.in_(list(CLIENT_CANCELLABLE)))

    result = await db.execute(query.values(status=OrderStatus.CANCELLED))
    if result.rowcount == 0:
        await db.rollback()
        raise BadRequest("Order can no longer be cancelled")
    await db.commit()

    logger.info(f"Order #{target} cancelled by user #{claims.user_id}")
    return MessageResponse(msg="Order cancelled")
