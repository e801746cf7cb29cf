"""Time entry writes and the weekly actual-hours rollup they drive."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from resource_planning.core.errors import NotFoundError, ValidationError
from resource_planning.core.logging import get_logger
from resource_planning.core.observability import time_entry_hours, tracer
from resource_planning.core.weeks import WEEK_LENGTH, week_start
from resource_planning.db.session import atomic
from resource_planning.models import Employee, Project, TimeEntry, WeeklyPlanning

logger = get_logger(__name__)

MAX_HOURS_PER_ENTRY = 24
SummaryGrouping = Literal["employee", "project"]


def recompute_actual_hours(db: Session, employee_id: int, project_id: int, anchor: date) -> float:
    """Write the week's logged hours into the matching planning row.

    ``anchor`` may be any day of the week. If no planning row exists for
    the week nothing is written. The caller owns the transaction.
    """
    start = week_start(anchor)
    with tracer.start_as_current_span("recompute_actual_hours"):
        db.flush()
        total = (
            db.query(func.coalesce(func.sum(TimeEntry.hours_worked), 0))
            .filter(
                TimeEntry.employee_id == employee_id,
                TimeEntry.project_id == project_id,
                TimeEntry.work_date >= start,
                TimeEntry.work_date < start + WEEK_LENGTH,
            )
            .scalar()
        )
        total = float(total or 0)
        updated = (
            db.query(WeeklyPlanning)
            .filter(
                WeeklyPlanning.employee_id == employee_id,
                WeeklyPlanning.project_id == project_id,
                WeeklyPlanning.week_start_date == start,
            )
            .update(
                {WeeklyPlanning.actual_hours: total, WeeklyPlanning.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
    logger.debug(
        "actual_hours_recomputed",
        employee_id=employee_id,
        project_id=project_id,
        week_start_date=start.isoformat(),
        actual_hours=total,
        rows_updated=updated,
    )
    return total


def _validate_hours(hours_worked: float) -> None:
    if hours_worked is None or hours_worked <= 0 or hours_worked > MAX_HOURS_PER_ENTRY:
        raise ValidationError("Hours worked must be between 0 and 24")


def _ensure_refs(db: Session, employee_id: int, project_id: int) -> None:
    if db.get(Employee, employee_id) is None:
        raise NotFoundError("Employee not found")
    if db.get(Project, project_id) is None:
        raise NotFoundError("Project not found")


def get_time_entry(db: Session, entry_id: int) -> TimeEntry:
    entry = db.get(TimeEntry, entry_id)
    if entry is None:
        raise NotFoundError("Time entry not found")
    return entry


def create_time_entry(
    db: Session,
    *,
    employee_id: int,
    project_id: int,
    work_date: date,
    hours_worked: float,
    description: str | None = None,
) -> TimeEntry:
    _validate_hours(hours_worked)
    with atomic(db):
        _ensure_refs(db, employee_id, project_id)
        entry = TimeEntry(
            employee_id=employee_id,
            project_id=project_id,
            work_date=work_date,
            hours_worked=hours_worked,
            description=description,
        )
        db.add(entry)
        recompute_actual_hours(db, employee_id, project_id, work_date)

    db.refresh(entry)
    time_entry_hours.record(float(hours_worked))
    logger.info(
        "time_entry_created",
        entry_id=entry.id,
        employee_id=employee_id,
        project_id=project_id,
        work_date=work_date.isoformat(),
        hours_worked=hours_worked,
    )
    return entry


def update_time_entry(
    db: Session,
    entry_id: int,
    *,
    employee_id: int,
    project_id: int,
    work_date: date,
    hours_worked: float,
    description: str | None = None,
) -> TimeEntry:
    """Replace a time entry and refresh the weeks it left and joined."""
    _validate_hours(hours_worked)
    with atomic(db):
        entry = get_time_entry(db, entry_id)
        _ensure_refs(db, employee_id, project_id)
        old = (entry.employee_id, entry.project_id, entry.work_date)

        entry.employee_id = employee_id
        entry.project_id = project_id
        entry.work_date = work_date
        entry.hours_worked = hours_worked
        entry.description = description

        recompute_actual_hours(db, *old)
        if old != (employee_id, project_id, work_date):
            recompute_actual_hours(db, employee_id, project_id, work_date)

    db.refresh(entry)
    logger.info("time_entry_updated", entry_id=entry_id, moved=old != (employee_id, project_id, work_date))
    return entry


def delete_time_entry(db: Session, entry_id: int) -> None:
    with atomic(db):
        entry = get_time_entry(db, entry_id)
        key = (entry.employee_id, entry.project_id, entry.work_date)
        db.delete(entry)
        recompute_actual_hours(db, *key)
    logger.info("time_entry_deleted", entry_id=entry_id)


def list_time_entries(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    employee_id: int | None = None,
    project_id: int | None = None,
    limit: int = 100,
) -> list:
    """Entries with employee and project display fields, newest first."""
    query = (
        db.query(
            TimeEntry,
            Employee.name.label("employee_name"),
            Project.name.label("project_name"),
            Project.code.label("project_code"),
        )
        .join(Employee, TimeEntry.employee_id == Employee.id)
        .join(Project, TimeEntry.project_id == Project.id)
    )
    if start_date:
        query = query.filter(TimeEntry.work_date >= start_date)
    if end_date:
        query = query.filter(TimeEntry.work_date <= end_date)
    if employee_id:
        query = query.filter(TimeEntry.employee_id == employee_id)
    if project_id:
        query = query.filter(TimeEntry.project_id == project_id)

    return (
        query.order_by(TimeEntry.work_date.desc(), Employee.name.asc(), TimeEntry.id.desc())
        .limit(limit)
        .all()
    )


def summarize(
    db: Session,
    group_by: str = "employee",
    *,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[dict]:
    """Total logged hours per employee or per project.

    Employees and projects without entries in the range are still listed,
    with zero totals.
    """
    join_on = []
    if start_date:
        join_on.append(TimeEntry.work_date >= start_date)
    if end_date:
        join_on.append(TimeEntry.work_date <= end_date)

    total_hours = func.coalesce(func.sum(TimeEntry.hours_worked), 0).label("total_hours")
    total_entries = func.count(TimeEntry.id).label("total_entries")

    if group_by == "employee":
        rows = (
            db.query(
                Employee.id,
                Employee.name,
                Employee.position,
                total_hours,
                total_entries,
                func.avg(TimeEntry.hours_worked).label("avg_hours_per_entry"),
            )
            .outerjoin(TimeEntry, and_(TimeEntry.employee_id == Employee.id, *join_on))
            .group_by(Employee.id, Employee.name, Employee.position)
            .order_by(total_hours.desc(), Employee.name.asc())
            .all()
        )
        return [
            {
                "id": row.id,
                "name": row.name,
                "position": row.position,
                "total_hours": float(row.total_hours or 0),
                "total_entries": row.total_entries,
                "avg_hours_per_entry": float(row.avg_hours_per_entry or 0),
            }
            for row in rows
        ]

    if group_by == "project":
        rows = (
            db.query(
                Project.id,
                Project.name,
                Project.code,
                total_hours,
                total_entries,
                func.count(func.distinct(TimeEntry.employee_id)).label("unique_employees"),
            )
            .outerjoin(TimeEntry, and_(TimeEntry.project_id == Project.id, *join_on))
            .group_by(Project.id, Project.name, Project.code)
            .order_by(total_hours.desc(), Project.name.asc())
            .all()
        )
        return [
            {
                "id": row.id,
                "name": row.name,
                "code": row.code,
                "total_hours": float(row.total_hours or 0),
                "total_entries": row.total_entries,
                "unique_employees": row.unique_employees,
            }
            for row in rows
        ]

    raise ValidationError('Invalid group_by parameter. Use "employee" or "project"')
