from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from resource_planning.db.session import get_session
from resource_planning.domains.time_entries import service

router = APIRouter(prefix="/time-entries", tags=["time"])


class TimeEntryIn(BaseModel):
    employee_id: int
    project_id: int
    work_date: date
    hours_worked: float = Field(..., gt=0, le=service.MAX_HOURS_PER_ENTRY)
    description: str | None = None


class TimeEntryOut(BaseModel):
    id: int
    employee_id: int
    project_id: int
    work_date: date
    hours_worked: float
    description: str | None = None
    created_at: datetime | None = None
    employee_name: str | None = None
    project_name: str | None = None
    project_code: str | None = None

    @classmethod
    def from_entry(cls, entry, **names) -> "TimeEntryOut":
        return cls(
            id=entry.id,
            employee_id=entry.employee_id,
            project_id=entry.project_id,
            work_date=entry.work_date,
            hours_worked=float(entry.hours_worked),
            description=entry.description,
            created_at=entry.created_at,
            **names,
        )

    @classmethod
    def from_row(cls, row) -> "TimeEntryOut":
        return cls.from_entry(
            row.TimeEntry,
            employee_name=row.employee_name,
            project_name=row.project_name,
            project_code=row.project_code,
        )


@router.get("", response_model=list[TimeEntryOut])
def list_time_entries(
    start_date: date | None = None,
    end_date: date | None = None,
    employee_id: int | None = None,
    project_id: int | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_session),
):
    rows = service.list_time_entries(
        db,
        start_date=start_date,
        end_date=end_date,
        employee_id=employee_id,
        project_id=project_id,
        limit=limit,
    )
    return [TimeEntryOut.from_row(row) for row in rows]


@router.get("/summary")
def summary(
    group_by: str = "employee",
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_session),
) -> list[dict]:
    return service.summarize(db, group_by, start_date=start_date, end_date=end_date)


@router.post("", response_model=TimeEntryOut, status_code=201)
def create_time_entry(payload: TimeEntryIn, db: Session = Depends(get_session)):
    entry = service.create_time_entry(db, **payload.model_dump())
    return TimeEntryOut.from_entry(entry)


@router.put("/{entry_id}", response_model=TimeEntryOut)
def update_time_entry(entry_id: int, payload: TimeEntryIn, db: Session = Depends(get_session)):
    entry = service.update_time_entry(db, entry_id, **payload.model_dump())
    return TimeEntryOut.from_entry(entry)


@router.delete("/{entry_id}", status_code=204)
def delete_time_entry(entry_id: int, db: Session = Depends(get_session)):
    service.delete_time_entry(db, entry_id)
    return None
