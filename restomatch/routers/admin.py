"""
Admin Reporting and User Management (admin only)

    GET /admin/stats              windowed totals with change vs previous window
    GET /admin/revenue            delivered revenue per day
    GET /admin/orders             order count per day
    GET /admin/users              client accounts
    PUT /admin/users/{id}/role    change a user's role
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from restomatch.core.config import Settings, get_settings
from restomatch.core.errors import BadRequest, FieldError, NotFound, ValidationFailed, parse_id
from restomatch.core.security import Claims
from restomatch.database import get_db
from restomatch.dependencies import require_admin
from restomatch.models import STAFF_ROLES, User, UserRole
from restomatch.schemas import (
    AdminStatsResponse,
    DailyOrderCount,
    DailyRevenue,
    RoleUpdate,
    RoleUpdateResponse,
    UserResponse,
)
from restomatch.services.stats import Window, compute_stats, daily_order_counts, daily_revenue
from restomatch.validation import NumberRange, OneOf, validated_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])

USER_NOT_FOUND = "User not found"

ROLE_RULES = [
    OneOf("role", UserRole, "Invalid role"),
    NumberRange("salary", "Salary must be zero or more", min=0, optional=True),
]


def _window(settings: Settings) -> Window:
    return Window.trailing(days=settings.stats_window_days)


@router.get("/stats", response_model=AdminStatsResponse)
async def admin_stats(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AdminStatsResponse:
    return AdminStatsResponse.model_validate(await compute_stats(db, _window(settings)))


@router.get("/revenue", response_model=list[DailyRevenue])
async def admin_revenue(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> list[DailyRevenue]:
    rows = await daily_revenue(db, _window(settings))
    return [DailyRevenue.model_validate(row) for row in rows]


@router.get("/orders", response_model=list[DailyOrderCount])
async def admin_orders(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> list[DailyOrderCount]:
    rows = await daily_order_counts(db, _window(settings))
    return [DailyOrderCount.model_validate(row) for row in rows]


@router.get("/users", response_model=list[UserResponse])
async def admin_users(db: AsyncSession = Depends(get_db)) -> list[UserResponse]:
    result = await db.execute(
        select(User).where(User.role == UserRole.CLIENT).order_by(User.created_at.desc())
    )
    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.put("/users/{user_id}/role", response_model=RoleUpdateResponse)
async def change_role(
    user_id: str,
    claims: Claims = Depends(require_admin),
    body: RoleUpdate = Depends(validated_body(ROLE_RULES, RoleUpdate)),
    db: AsyncSession = Depends(get_db),
) -> RoleUpdateResponse:
    """
    Promote or demote a user.

    Staff and admin roles carry a salary: it must already be stored or be
    sent along. Demotion to client clears it.
    """
    target = parse_id(user_id, USER_NOT_FOUND)
    user = await db.get(User, target)
    if not user:
        raise NotFound(USER_NOT_FOUND)

    if user.id == claims.user_id and body.role != UserRole.ADMIN:
        raise BadRequest("You cannot change your own role")

    values = {"role": body.role, "salary": None}
    if body.role in STAFF_ROLES:
        salary = body.salary if body.salary is not None else user.salary
        if salary is None:
            raise ValidationFailed([FieldError("salary", "Salary is required for staff and admin roles")])
        values["salary"] = salary

    result = await db.execute(update(User).where(User.id == target).values(**values))
    if result.rowcount == 0:
        raise NotFound(USER_NOT_FOUND)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User #{target} is now {body.role.value} (changed by admin #{claims.user_id})")
    return RoleUpdateResponse(msg="Role updated", user=UserResponse.model_validate(user))
