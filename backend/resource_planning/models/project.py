from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, String

from resource_planning.db.session import Base

PROJECT_STATUSES = ("active", "inactive", "completed", "on_hold")


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR start_date <= end_date",
            name="ck_projects_date_order",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, default="active")  # active|inactive|completed|on_hold
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
