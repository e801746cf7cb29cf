from datetime import date, timedelta

from sqlalchemy.orm import Session

from resource_planning.core.config import get_settings
from resource_planning.core.logging import configure_logging, get_logger
from resource_planning.core.weeks import week_start
from resource_planning.db.session import Database, atomic
from resource_planning.domains.planning.service import upsert_planning
from resource_planning.domains.rates.service import add_rate
from resource_planning.domains.time_entries.service import create_time_entry
from resource_planning.models import Employee, Project

logger = get_logger(__name__)


def seed(session: Session, today: date | None = None) -> None:
    """Load a small demo dataset for the current and previous week."""
    current_week = week_start(today or date.today())
    previous_week = current_week - timedelta(days=7)

    with atomic(session):
        manager = Employee(name="Grace Hopper", email="grace@example.com", position="Engineering Manager")
        ada = Employee(name="Ada Lovelace", email="ada@example.com", position="Senior Developer")
        alan = Employee(name="Alan Turing", email="alan@example.com", position="Data Scientist")
        portal = Project(name="Customer Portal", code="PRJ-100", start_date=date(2024, 1, 1))
        analytics = Project(name="Analytics Platform", code="PRJ-200", start_date=date(2024, 3, 1))
        session.add_all([manager, ada, alan, portal, analytics])

    add_rate(session, ada.id, rate_per_hour=75, effective_from=date(2024, 1, 1))
    add_rate(session, alan.id, rate_per_hour=60, effective_from=date(2024, 1, 1))
    add_rate(session, alan.id, rate_per_hour=68, effective_from=previous_week)

    assignments = [
        (ada.id, portal.id, 30),
        (ada.id, analytics.id, 10),
        (alan.id, analytics.id, 40),
    ]
    for week in (previous_week, current_week):
        for employee_id, project_id, hours in assignments:
            upsert_planning(
                session,
                employee_id=employee_id,
                project_id=project_id,
                week_start_date=week,
                planned_hours=hours,
                created_by_manager_id=manager.id,
            )

    for offset in range(5):
        day = previous_week + timedelta(days=offset)
        create_time_entry(session, employee_id=ada.id, project_id=portal.id, work_date=day, hours_worked=6.5)
        create_time_entry(session, employee_id=alan.id, project_id=analytics.id, work_date=day, hours_worked=8)
    create_time_entry(
        session,
        employee_id=ada.id,
        project_id=analytics.id,
        work_date=current_week,
        hours_worked=4,
        description="Dashboard review",
    )
    logger.info("seed_complete", week_start_date=current_week.isoformat())


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    database = Database(settings.database_url)
    database.create_all()
    session = database.SessionLocal()
    try:
        seed(session)
    finally:
        session.close()
        database.dispose()


if __name__ == "__main__":
    main()
