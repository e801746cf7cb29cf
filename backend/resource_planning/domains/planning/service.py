"""Weekly planned-hours assignments, one row per employee, project and week."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Query, Session

from resource_planning.core.errors import NotFoundError, ValidationError
from resource_planning.core.logging import get_logger
from resource_planning.core.observability import planning_upserts
from resource_planning.core.weeks import is_week_start, week_start
from resource_planning.db.session import atomic
from resource_planning.domains.time_entries.service import recompute_actual_hours
from resource_planning.models import Employee, Project, WeeklyPlanning

logger = get_logger(__name__)

_NATIVE_UPSERT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}
_KEY_COLUMNS = ["employee_id", "project_id", "week_start_date"]


def planning_query(db: Session) -> Query:
    """Planning rows joined with employee and project display fields."""
    return (
        db.query(
            WeeklyPlanning,
            Employee.name.label("employee_name"),
            Employee.position.label("position"),
            Project.name.label("project_name"),
            Project.code.label("project_code"),
        )
        .join(Employee, WeeklyPlanning.employee_id == Employee.id)
        .join(Project, WeeklyPlanning.project_id == Project.id)
    )


def _in_range(query: Query, start_date: date | None, end_date: date | None) -> Query:
    if start_date:
        query = query.filter(WeeklyPlanning.week_start_date >= start_date)
    if end_date:
        query = query.filter(WeeklyPlanning.week_start_date <= end_date)
    return query


def list_week(db: Session, week: date) -> list:
    """All assignments of the week containing ``week``, by employee then project."""
    return (
        planning_query(db)
        .filter(WeeklyPlanning.week_start_date == week_start(week))
        .order_by(Employee.name.asc(), Project.name.asc())
        .all()
    )


def list_project_planning(
    db: Session, project_id: int, start_date: date | None = None, end_date: date | None = None
) -> list:
    query = planning_query(db).filter(WeeklyPlanning.project_id == project_id)
    return (
        _in_range(query, start_date, end_date)
        .order_by(WeeklyPlanning.week_start_date.desc(), Employee.name.asc())
        .all()
    )


def list_employee_planning(
    db: Session, employee_id: int, start_date: date | None = None, end_date: date | None = None
) -> list:
    query = planning_query(db).filter(WeeklyPlanning.employee_id == employee_id)
    return (
        _in_range(query, start_date, end_date)
        .order_by(WeeklyPlanning.week_start_date.desc(), Project.name.asc())
        .all()
    )


def _upsert_native(db: Session, values: dict) -> bool:
    insert = _NATIVE_UPSERT.get(db.get_bind().dialect.name)
    if insert is None:
        return False
    stmt = insert(WeeklyPlanning).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=_KEY_COLUMNS,
        set_={"planned_hours": stmt.excluded.planned_hours, "updated_at": datetime.utcnow()},
    )
    db.execute(stmt)
    return True


def _find_by_key(db: Session, employee_id: int, project_id: int, week: date) -> WeeklyPlanning | None:
    return (
        db.query(WeeklyPlanning)
        .filter(
            WeeklyPlanning.employee_id == employee_id,
            WeeklyPlanning.project_id == project_id,
            WeeklyPlanning.week_start_date == week,
        )
        .one_or_none()
    )


def upsert_planning(
    db: Session,
    *,
    employee_id: int,
    project_id: int,
    week_start_date: date,
    planned_hours: float,
    created_by_manager_id: int | None = None,
) -> WeeklyPlanning:
    """Insert an assignment or overwrite the planned hours of an existing one.

    On conflict only ``planned_hours`` changes; ``actual_hours`` and the
    original manager are kept. A new row starts from the hours already
    logged for that week. Concurrent writers race; the last one wins.
    """
    if planned_hours is None or planned_hours < 0:
        raise ValidationError("Planned hours cannot be negative")
    if not is_week_start(week_start_date):
        raise ValidationError("week_start_date must be a Monday")

    with atomic(db):
        if db.get(Employee, employee_id) is None:
            raise NotFoundError("Employee not found")
        if db.get(Project, project_id) is None:
            raise NotFoundError("Project not found")
        if created_by_manager_id is not None and db.get(Employee, created_by_manager_id) is None:
            raise NotFoundError("Manager not found")

        values = {
            "employee_id": employee_id,
            "project_id": project_id,
            "week_start_date": week_start_date,
            "planned_hours": planned_hours,
            "created_by_manager_id": created_by_manager_id,
        }
        existing = _find_by_key(db, employee_id, project_id, week_start_date)
        if not _upsert_native(db, values):
            if existing is None:
                db.add(WeeklyPlanning(**values))
            else:
                existing.planned_hours = planned_hours
        if existing is None:
            # Time may already be logged for the week
            recompute_actual_hours(db, employee_id, project_id, week_start_date)

    row = _find_by_key(db, employee_id, project_id, week_start_date)
    planning_upserts.add(1)
    logger.info(
        "planning_upserted",
        planning_id=row.id,
        employee_id=employee_id,
        project_id=project_id,
        week_start_date=week_start_date.isoformat(),
        planned_hours=planned_hours,
    )
    return row


def delete_planning(db: Session, planning_id: int) -> None:
    with atomic(db):
        row = db.get(WeeklyPlanning, planning_id)
        if row is None:
            raise NotFoundError("Planning entry not found")
        db.delete(row)
    logger.info("planning_deleted", planning_id=planning_id)


def employee_workload(
    db: Session, employee_id: int, start_date: date | None = None, end_date: date | None = None
) -> list[dict]:
    """Planned and actual hours per week for one employee, newest week first."""
    query = db.query(
        WeeklyPlanning.week_start_date,
        func.coalesce(func.sum(WeeklyPlanning.planned_hours), 0).label("total_planned_hours"),
        func.coalesce(func.sum(WeeklyPlanning.actual_hours), 0).label("total_actual_hours"),
        func.count(WeeklyPlanning.project_id).label("project_count"),
    ).filter(WeeklyPlanning.employee_id == employee_id)
    rows = (
        _in_range(query, start_date, end_date)
        .group_by(WeeklyPlanning.week_start_date)
        .order_by(WeeklyPlanning.week_start_date.desc())
        .all()
    )
    return [
        {
            "week_start_date": row.week_start_date,
            "total_planned_hours": float(row.total_planned_hours),
            "total_actual_hours": float(row.total_actual_hours),
            "project_count": row.project_count,
        }
        for row in rows
    ]


def project_team(db: Session, project_id: int, week: date | None = None) -> list[Employee]:
    query = (
        db.query(Employee)
        .join(WeeklyPlanning, WeeklyPlanning.employee_id == Employee.id)
        .filter(WeeklyPlanning.project_id == project_id)
    )
    if week:
        query = query.filter(WeeklyPlanning.week_start_date == week_start(week))
    return query.distinct().order_by(Employee.name.asc()).all()
