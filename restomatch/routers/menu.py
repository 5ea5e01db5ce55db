"""
Menu Endpoints

Reads are public, writes need a staff or admin token. Deleting an item
withdraws it: it disappears from the public listing but stays resolvable
by id so past orders keep their references.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from restomatch.core.errors import NotFound, parse_id
from restomatch.core.security import Claims
from restomatch.database import get_db
from restomatch.dependencies import require_staff
from restomatch.models import MenuCategory, MenuItem, MenuItemStatus
from restomatch.schemas import (
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MenuStats,
    MessageResponse,
)
from restomatch.validation import IsBoolean, MaxLength, NotEmpty, NumberRange, OneOf, validated_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/menu", tags=["Menu"])

ITEM_NOT_FOUND = "Menu item not found"

CREATE_RULES = [
    NotEmpty("name", "Name is required"),
    MaxLength("name", 100, "Name must be at most 100 characters"),
    NotEmpty("description", "Description is required"),
    NumberRange("price", "Price must be a positive number", min=0, exclusive_min=True),
    OneOf("category", MenuCategory, "Category is required"),
    NotEmpty("image", "Image is required"),
    IsBoolean("available", optional=True),
]

UPDATE_RULES = [
    NotEmpty("name", "Name cannot be empty", optional=True),
    MaxLength("name", 100, "Name must be at most 100 characters", optional=True),
    NotEmpty("description", "Description cannot be empty", optional=True),
    NumberRange("price", "Price must be a positive number", min=0, exclusive_min=True, optional=True),
    OneOf("category", MenuCategory, "Unknown category", optional=True),
    NotEmpty("image", "Image cannot be empty", optional=True),
    IsBoolean("available", optional=True),
]


def _status_for(available: bool) -> MenuItemStatus:
    return MenuItemStatus.AVAILABLE if available else MenuItemStatus.WITHDRAWN


@router.get("", response_model=list[MenuItemResponse])
async def list_menu(db: AsyncSession = Depends(get_db)) -> list[MenuItemResponse]:
    """Available items, grouped by category then name."""
    result = await db.execute(
        select(MenuItem)
        .where(MenuItem.status == MenuItemStatus.AVAILABLE)
        .order_by(MenuItem.category, MenuItem.name)
    )
    return [MenuItemResponse.model_validate(item) for item in result.scalars().all()]


@router.get("/categories", response_model=list[str])
async def list_categories(db: AsyncSession = Depends(get_db)) -> list[str]:
    result = await db.execute(select(MenuItem.category).distinct())
    return sorted(category.value for category in result.scalars().all())


@router.get("/stats", response_model=MenuStats)
async def menu_stats(
    claims: Claims = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> MenuStats:
    result = await db.execute(
        select(func.count(MenuItem.id)).where(MenuItem.status == MenuItemStatus.AVAILABLE)
    )
    return MenuStats(total_items=result.scalar() or 0)


@router.get("/{item_id}", response_model=MenuItemResponse)
async def get_menu_item(item_id: str, db: AsyncSession = Depends(get_db)) -> MenuItemResponse:
    """Direct lookup, withdrawn items included."""
    item = await db.get(MenuItem, parse_id(item_id, ITEM_NOT_FOUND))
    if not item:
        raise NotFound(ITEM_NOT_FOUND)
    return MenuItemResponse.model_validate(item)


@router.post("", response_model=MenuItemResponse)
async def create_menu_item(
    claims: Claims = Depends(require_staff),
    body: MenuItemCreate = Depends(validated_body(CREATE_RULES, MenuItemCreate)),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    item = MenuItem(
        name=body.name.strip(),
        description=body.description.strip(),
        price=body.price,
        category=body.category,
        image=body.image,
        status=_status_for(body.available),
    )
    db.add(item)
    await db.commit()

    logger.info(f"Menu item #{item.id} '{item.name}' added by user #{claims.user_id}")
    return MenuItemResponse.model_validate(item)


@router.put("/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: str,
    claims: Claims = Depends(require_staff),
    body: MenuItemUpdate = Depends(validated_body(UPDATE_RULES, MenuItemUpdate)),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    item = await db.get(MenuItem, parse_id(item_id, ITEM_NOT_FOUND))
    if not item:
        raise NotFound(ITEM_NOT_FOUND)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if "available" in changes:
        item.status = _status_for(changes.pop("available"))
    for field in ("name", "description"):
        if field in changes:
            changes[field] = changes[field].strip()
    for field, value in changes.items():
        setattr(item, field, value)

    await db.commit()
    logger.info(f"Menu item #{item.id} updated by user #{claims.user_id}")
    return MenuItemResponse.model_validate(item)


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_menu_item(
    item_id: str,
    claims: Claims = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    result = await db.execute(
        update(MenuItem)
        .where(MenuItem.id == parse_id(item_id, ITEM_NOT_FOUND))
        .values(status=MenuItemStatus.WITHDRAWN)
    )
    if result.rowcount == 0:
        raise NotFound(ITEM_NOT_FOUND)
    await db.commit()

    logger.info(f"Menu item #{item_id} withdrawn by user #{claims.user_id}")
    return MessageResponse(msg="Menu item removed from the menu")
