"""
Reservation Endpoints

Booking is public; everything else needs a staff or admin token. The legacy
``/new``, ``/all`` and ``PATCH /{id}/status`` routes are kept for existing
clients and go through the same gates as their primary counterparts.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from restomatch.core.errors import NotFound, parse_id
from restomatch.core.security import Claims
from restomatch.database import get_db
from restomatch.dependencies import require_staff
from restomatch.models import Reservation, ReservationStatus, ReservationType
from restomatch.schemas import (
    MessageResponse,
    ReservationCreate,
    ReservationResponse,
    ReservationStats,
    ReservationStatusUpdate,
)
from restomatch.validation import (
    IsArray,
    IsEmail,
    Matches,
    MaxLength,
    NotEmpty,
    NumberRange,
    OneOf,
    field_equals,
    validated_body,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["Reservations"])

RESERVATION_NOT_FOUND = "Reservation not found"

DATE_PATTERN = r"\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])"
TIME_PATTERN = r"([01]\d|2[0-3]):[0-5]\d"

CREATE_RULES = [
    NotEmpty("name", "Name is required"),
    MaxLength("name", 100, "Name must be at most 100 characters"),
    IsEmail("email", "Invalid email"),
    NotEmpty("phone", "Phone number is required"),
    MaxLength("phone", 30, "Phone number must be at most 30 characters"),
    Matches("date", DATE_PATTERN, "Date must be formatted YYYY-MM-DD"),
    Matches("time", TIME_PATTERN, "Time must be formatted HH:MM"),
    OneOf("type", ReservationType, "Type must be surPlace or livraison"),
    NumberRange(
        "numberOfPeople",
        "Number of people is required for an on-site reservation",
        min=1,
        integer=True,
        when=field_equals("type", ReservationType.SUR_PLACE.value),
    ),
    NotEmpty(
        "address",
        "Address is required for a delivery",
        when=field_equals("type", ReservationType.LIVRAISON.value),
    ),
    MaxLength("address", 255, "Address must be at most 255 characters", optional=True),
    IsArray("dishes", optional=True),
    NotEmpty("dishes.*.name", "Dish name is required"),
    NumberRange("dishes.*.price", "Dish price must be zero or more", min=0),
    NumberRange("dishes.*.quantity", "Dish quantity must be at least 1", min=1, integer=True),
    NumberRange("totalAmount", "Total amount must be zero or more", min=0),
]

STATUS_RULES = [
    OneOf(
        "status",
        ReservationStatus,
        "Status must be one of: " + ", ".join(s.value for s in ReservationStatus),
    ),
]


async def _create(body: ReservationCreate, db: AsyncSession) -> ReservationResponse:
    reservation = Reservation(
        name=body.name.strip(),
        email=body.email.strip(),
        phone=body.phone.strip(),
        date=body.date,
        time=body.time,
        reservation_type=body.reservation_type,
        number_of_people=body.number_of_people,
        address=body.address,
        special_requests=body.special_requests,
        dishes=[dish.model_dump(by_alias=True) for dish in body.dishes],
        total_amount=body.total_amount,
        status=ReservationStatus.PENDING,
    )
    db.add(reservation)
    await db.commit()

    logger.info(
        f"Reservation #{reservation.id} ({reservation.reservation_type.value}) "
        f"for {reservation.date} {reservation.time}"
    )
    return ReservationResponse.model_validate(reservation)


async def _set_status(db: AsyncSession, raw_id: str, status: ReservationStatus) -> ReservationResponse:
    target = parse_id(raw_id, RESERVATION_NOT_FOUND)
    result = await db.execute(
        update(Reservation).where(Reservation.id == target).values(status=status)
    )
    if result.rowcount == 0:
        raise NotFound(RESERVATION_NOT_FOUND)
    await db.commit()

    reservation = await db.get(Reservation, target, populate_existing=True)
    logger.info(f"Reservation #{target} -> {status.value}")
    return ReservationResponse.model_validate(reservation)


@router.post("", response_model=ReservationResponse)
async def create_reservation(
    body: ReservationCreate = Depends(validated_body(CREATE_RULES, ReservationCreate)),
    db: AsyncSession = Depends(get_db),
) -> ReservationResponse:
    return await _create(body, db)


@router.post("/new", response_model=ReservationResponse, status_code=201)
async def create_reservation_legacy(
    body: ReservationCreate = Depends(validated_body(CREATE_RULES, ReservationCreate)),
    db: AsyncSession = Depends(get_db),
) -> ReservationResponse:
    return await _create(body, db)


@router.get("", response_model=list[ReservationResponse])
async def list_reservations(
    claims: Claims = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> list[ReservationResponse]:
    """Upcoming view: by date, then time."""
    result = await db.execute(
        select(Reservation).order_by(Reservation.date, Reservation.time, Reservation.id)
    )
    return [ReservationResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/all", response_model=list[ReservationResponse])
async def list_reservations_legacy(
    claims: Claims = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> list[ReservationResponse]:
    """Latest bookings first."""
    result = await db.execute(
        select(Reservation).order_by(Reservation.created_at.desc(), Reservation.id.desc())
    )
    return [ReservationResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/stats", response_model=ReservationStats)
async def reservation_stats(
    claims: Claims = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> ReservationStats:
    today = date.today().isoformat()
    total = await db.execute(select(func.count(Reservation.id)))
    pending = await db.execute(
        select(func.count(Reservation.id)).where(Reservation.status == ReservationStatus.PENDING)
    )
    todays = await db.execute(select(func.count(Reservation.id)).where(Reservation.date == today))
    return ReservationStats(
        total=total.scalar() or 0,
        pending=pending.scalar() or 0,
        today=todays.scalar() or 0,
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: str,
    claims: Claims = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> ReservationResponse:
    reservation = await db.get(Reservation, parse_id(reservation_id, RESERVATION_NOT_FOUND))
    if not reservation:
        raise NotFound(RESERVATION_NOT_FOUND)
    return ReservationResponse.model_validate(reservation)


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: str,
    claims: Claims = Depends(require_staff),
    body: ReservationStatusUpdate = Depends(validated_body(STATUS_RULES, ReservationStatusUpdate)),
    db: AsyncSession = Depends(get_db),
) -> ReservationResponse:
    return await _set_status(db, reservation_id, body.status)


@router.patch("/{reservation_id}/status", response_model=ReservationResponse)
async def update_reservation_status_legacy(
    reservation_id: str,
    claims: Claims = Depends(require_staff),
    body: ReservationStatusUpdate = Depends(validated_body(STATUS_RULES, ReservationStatusUpdate)),
    db: AsyncSession = Depends(get_db),
) -> ReservationResponse:
    return await _set_status(db, reservation_id, body.status)


@router.delete("/{reservation_id}", response_model=MessageResponse)
async def delete_reservation(
    reservation_id: str,
    claims: Claims = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """The one hard delete in the API."""
    reservation = await db.get(Reservation, parse_id(reservation_id, RESERVATION_NOT_FOUND))
    if not reservation:
        raise NotFound(RESERVATION_NOT_FOUND)

    await db.delete(reservation)
    await db.commit()

    logger.info(f"Reservation #{reservation.id} deleted by user #{claims.user_id}")
    return MessageResponse(msg="Reservation deleted")
