"""Hourly rate history and point-in-time rate lookup."""

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from resource_planning.core.errors import NotFoundError, ValidationError
from resource_planning.core.logging import get_logger
from resource_planning.db.session import atomic
from resource_planning.models import Employee, RateHistory

logger = get_logger(__name__)


def find_rate(db: Session, employee_id: int, on_date: date) -> RateHistory | None:
    """Return the rate row in effect on ``on_date``.

    Histories may overlap or have gaps. When several rows cover the date the
    one with the latest ``effective_from`` wins.
    """
    return (
        db.query(RateHistory)
        .filter(
            RateHistory.employee_id == employee_id,
            RateHistory.effective_from <= on_date,
            or_(RateHistory.effective_to.is_(None), RateHistory.effective_to >= on_date),
        )
        .order_by(RateHistory.effective_from.desc(), RateHistory.id.desc())
        .first()
    )


def resolve_rate(db: Session, employee_id: int, on_date: date) -> float:
    row = find_rate(db, employee_id, on_date)
    return float(row.rate_per_hour) if row else 0.0


def list_rates(db: Session, employee_id: int) -> list[RateHistory]:
    if db.get(Employee, employee_id) is None:
        raise NotFoundError("Employee not found")
    return (
        db.query(RateHistory)
        .filter(RateHistory.employee_id == employee_id)
        .order_by(RateHistory.effective_from.desc(), RateHistory.id.desc())
        .all()
    )


def add_rate(
    db: Session,
    employee_id: int,
    *,
    rate_per_hour: float,
    effective_from: date,
    effective_to: date | None = None,
) -> RateHistory:
    """Record a new rate for an employee.

    An open-ended rate closes every currently open row of the employee on the
    day before ``effective_from``. The close and the insert commit together.
    """
    if rate_per_hour is None or rate_per_hour <= 0:
        raise ValidationError("Rate per hour must be greater than 0")
    if effective_to is not None and effective_to < effective_from:
        raise ValidationError("effective_to cannot be earlier than effective_from")

    with atomic(db):
        if db.get(Employee, employee_id) is None:
            raise NotFoundError("Employee not found")

        closed = 0
        if effective_to is None:
            closed = (
                db.query(RateHistory)
                .filter(RateHistory.employee_id == employee_id, RateHistory.effective_to.is_(None))
                .update(
                    {RateHistory.effective_to: effective_from - timedelta(days=1)},
                    synchronize_session=False,
                )
            )

        rate = RateHistory(
            employee_id=employee_id,
            rate_per_hour=rate_per_hour,
            effective_from=effective_from,
            effective_to=effective_to,
        )
        db.add(rate)

    db.refresh(rate)
    logger.info(
        "rate_added",
        employee_id=employee_id,
        rate_per_hour=rate_per_hour,
        effective_from=effective_from.isoformat(),
        closed_rows=closed,
    )
    return rate
