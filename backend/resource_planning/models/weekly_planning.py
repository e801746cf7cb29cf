from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from resource_planning.db.session import Base


class WeeklyPlanning(Base):
    __tablename__ = "weekly_planning"
    __table_args__ = (
        UniqueConstraint(
            "employee_id", "project_id", "week_start_date", name="uq_weekly_planning_assignment"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    week_start_date = Column(Date, nullable=False)  # always a Monday
    planned_hours = Column(Float, nullable=False, default=0)

    # Derived from time entries; never written by API clients
    actual_hours = Column(Float, nullable=False, default=0)

    created_by_manager_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = relationship("Employee", foreign_keys=[employee_id])
    project = relationship("Project")
