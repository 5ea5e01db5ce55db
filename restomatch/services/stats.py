"""
Aggregate Statistics

Counts and sums over a time window, compared against the immediately
preceding window of the same length.

Usage:
    window = Window.trailing(days=30)
    stats = await compute_stats(db, window)
    stats["revenue"]  # {"total": 1234.5, "change": 12.5}
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from restomatch.models import Order, OrderStatus, Reservation, User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Window:
    """Half-open time range [start, end)."""
    start: datetime
    end: datetime

    @classmethod
    def trailing(cls, days: int, now: Optional[datetime] = None) -> "Window":
        end = now or datetime.now(timezone.utc)
        return cls(start=end - timedelta(days=days), end=end)

    @property
    def length(self) -> timedelta:
        return self.end - self.start

    def previous(self) -> "Window":
        return Window(start=self.start - self.length, end=self.start)


def percentage_change(current: float, previous: float) -> float:
    """
    Relative change in percent, rounded to two decimals.

    An empty previous window has no meaningful baseline and yields 0.
    """
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 2)


async def _count(db: AsyncSession, model, window: Window, *criteria) -> int:
    query = select(func.count(model.id)).where(
        model.created_at >= window.start,
        model.created_at < window.end,
        *criteria,
    )
    result = await db.execute(query)
    return result.scalar() or 0


async def _delivered_revenue(db: AsyncSession, window: Window) -> float:
    result = await db.execute(
        select(func.sum(Order.total_amount)).where(
            Order.status == OrderStatus.DELIVERED,
            Order.created_at >= window.start,
            Order.created_at < window.end,
        )
    )
    return round(result.scalar() or 0.0, 2)


async def compute_stats(db: AsyncSession, window: Window) -> dict[str, dict[str, Any]]:
    """
    Revenue, order, new-customer and reservation totals for a window,
    each with its percentage change against the previous window.
    """
    previous = window.previous()

    measures = {
        "revenue": lambda w: _delivered_revenue(db, w),
        "orders": lambda w: _count(db, Order, w),
        "customers": lambda w: _count(db, User, w, User.role == UserRole.CLIENT),
        "reservations": lambda w: _count(db, Reservation, w),
    }

    stats = {}
    for name, measure in measures.items():
        current_total = await measure(window)
        previous_total = await measure(previous)
        stats[name] = {
            "total": current_total,
            "change": percentage_change(current_total, previous_total),
        }

    logger.debug(f"Stats {window.start:%Y-%m-%d}..{window.end:%Y-%m-%d}: {stats}")
    return stats


async def daily_revenue(db: AsyncSession, window: Window) -> list[dict[str, Any]]:
    """Delivered revenue per calendar day, oldest first."""
    day = func.date(Order.created_at)
    result = await db.execute(
        select(day.label("day"), func.sum(Order.total_amount).label("total"))
        .where(
            Order.status == OrderStatus.DELIVERED,
            Order.created_at >= window.start,
            Order.created_at < window.end,
        )
        .group_by(day)
        .order_by(day)
    )
    return [{"date": str(row.day), "total": round(row.total or 0.0, 2)} for row in result]


async def daily_order_counts(db: AsyncSession, window: Window) -> list[dict[str, Any]]:
    """Number of orders per calendar day, oldest first."""
    day = func.date(Order.created_at)
    result = await db.execute(
        select(day.label("day"), func.count(Order.id).label("orders"))
        .where(Order.created_at >= window.start, Order.created_at < window.end)
        .group_by(day)
        .order_by(day)
    )
    return [{"date": str(row.day), "count": row.orders} for row in result]
