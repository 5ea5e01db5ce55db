"""
Staff Management Endpoints (admin only)

Staff accounts are regular users with a staff or admin role and a salary.
Removing a staff member deactivates the account so their history stays intact.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from restomatch.core.errors import BadRequest, NotFound, parse_id
from restomatch.core.security import Claims, hash_password
from restomatch.database import get_db
from restomatch.dependencies import require_admin
from restomatch.models import STAFF_ROLES, User, UserRole, UserStatus
from restomatch.schemas import MessageResponse, StaffCreate, StaffStats, StaffUpdate, UserResponse
from restomatch.validation import IsEmail, MaxLength, MinLength, NotEmpty, NumberRange, OneOf, validated_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/staff", tags=["Staff"])

USER_NOT_FOUND = "User not found"
NOT_STAFF = "This user is not a staff member"

CREATE_RULES = [
    NotEmpty("name", "Name is required"),
    MaxLength("name", 100, "Name must be at most 100 characters"),
    IsEmail("email", "Invalid email"),
    MinLength("password", 6, "Password must be at least 6 characters"),
    OneOf("role", STAFF_ROLES, "Role must be staff or admin"),
    NumberRange("salary", "Salary is required", min=0),
]

UPDATE_RULES = [
    NumberRange("salary", "Salary is required", min=0),
    NotEmpty("name", "Name cannot be empty", optional=True),
    MaxLength("name", 100, "Name must be at most 100 characters", optional=True),
]


async def _get_staff_member(db: AsyncSession, raw_id: str) -> User:
    user = await db.get(User, parse_id(raw_id, USER_NOT_FOUND))
    if not user:
        raise NotFound(USER_NOT_FOUND)
    if user.role not in STAFF_ROLES:
        raise BadRequest(NOT_STAFF)
    return user


@router.get("", response_model=list[UserResponse])
async def list_staff(
    claims: Claims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    result = await db.execute(
        select(User)
        .where(User.role == UserRole.STAFF, User.status == UserStatus.ACTIVE)
        .order_by(User.name)
    )
    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.get("/stats", response_model=StaffStats)
async def staff_stats(
    claims: Claims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> StaffStats:
    active = User.status == UserStatus.ACTIVE
    result = await db.execute(
        select(User.role, func.count(User.id)).where(active).group_by(User.role)
    )
    counts = {role: count for role, count in result.all()}

    average = await db.execute(
        select(func.avg(User.salary)).where(active, User.role.in_(list(STAFF_ROLES)))
    )
    return StaffStats(
        total_staff=counts.get(UserRole.STAFF, 0),
        total_admin=counts.get(UserRole.ADMIN, 0),
        average_salary=round(average.scalar() or 0.0, 2),
    )


@router.post("", response_model=UserResponse)
async def create_staff(
    claims: Claims = Depends(require_admin),
    body: StaffCreate = Depends(validated_body(CREATE_RULES, StaffCreate)),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    email = body.email.strip().lower()
    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise BadRequest("User already exists")

    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        role=body.role,
        salary=body.salary,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise BadRequest("User already exists")

    logger.info(f"Staff member #{user.id} ({user.role.value}) added by admin #{claims.user_id}")
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_staff(
    user_id: str,
    claims: Claims = Depends(require_admin),
    body: StaffUpdate = Depends(validated_body(UPDATE_RULES, StaffUpdate)),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await _get_staff_member(db, user_id)

    user.salary = body.salary
    if body.name:
        user.name = body.name.strip()
    await db.commit()

    logger.info(f"Staff member #{user.id} updated by admin #{claims.user_id}")
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def deactivate_staff(
    user_id: str,
    claims: Claims = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    user = await _get_staff_member(db, user_id)
    if user.id == claims.user_id:
        raise BadRequest("You cannot deactivate your own account")

    await db.execute(
        update(User).where(User.id == user.id).values(status=UserStatus.DEACTIVATED)
    )
    await db.commit()

    logger.info(f"Staff member #{user.id} deactivated by admin #{claims.user_id}")
    return MessageResponse(msg="Staff member removed")
