from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from resource_planning.core.errors import ConflictError, NotFoundError, ValidationError
from resource_planning.core.logging import get_logger
from resource_planning.db.session import atomic, get_session
from resource_planning.domains.budget.calculator import BudgetCalculator
from resource_planning.domains.planning import service as planning
from resource_planning.domains.planning.router import PlanningRowOut
from resource_planning.domains.time_entries import service as time_entries
from resource_planning.domains.time_entries.router import TimeEntryOut
from resource_planning.models import Project

router = APIRouter(prefix="/projects", tags=["projects"])
logger = get_logger(__name__)

ProjectStatus = Literal["active", "inactive", "completed", "on_hold"]


class ProjectIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    status: ProjectStatus = "active"
    start_date: date | None = None
    end_date: date | None = None


class ProjectOut(ProjectIn):
    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TeamMemberOut(BaseModel):
    id: int
    name: str
    position: str
    email: str

    model_config = ConfigDict(from_attributes=True)


def _get_project(db: Session, project_id: int) -> Project:
    row = db.get(Project, project_id)
    if row is None:
        raise NotFoundError("Project not found")
    return row


def _validate(db: Session, payload: ProjectIn, exclude_id: int | None = None) -> None:
    if payload.start_date and payload.end_date and payload.start_date > payload.end_date:
        raise ValidationError("Start date cannot be later than end date")
    query = db.query(Project.id).filter(Project.code == payload.code.strip())
    if exclude_id is not None:
        query = query.filter(Project.id != exclude_id)
    if query.first():
        raise ConflictError("Project with this code already exists")


def _apply(row: Project, payload: ProjectIn) -> None:
    row.name = payload.name.strip()
    row.code = payload.code.strip()
    row.status = payload.status
    row.start_date = payload.start_date
    row.end_date = payload.end_date


@router.get("", response_model=list[ProjectOut])
def list_projects(
    status: ProjectStatus | None = None,
    active_only: bool = False,
    db: Session = Depends(get_session),
):
    query = db.query(Project)
    if status:
        query = query.filter(Project.status == status)
    if active_only:
        query = query.filter(Project.status == "active")
    return query.order_by(Project.name.asc(), Project.id.asc()).all()


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, db: Session = Depends(get_session)):
    return _get_project(db, project_id)


@router.post("", response_model=ProjectOut, status_code=201)
def create_project(payload: ProjectIn, db: Session = Depends(get_session)):
    with atomic(db):
        _validate(db, payload)
        row = Project()
        _apply(row, payload)
        db.add(row)
    db.refresh(row)

    logger.info("project_created", project_id=row.id, code=row.code)
    return row


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(project_id: int, payload: ProjectIn, db: Session = Depends(get_session)):
    with atomic(db):
        row = _get_project(db, project_id)
        _validate(db, payload, exclude_id=project_id)
        _apply(row, payload)
    db.refresh(row)

    logger.info("project_updated", project_id=project_id, status=row.status)
    return row


@router.delete("/{project_id}", response_model=ProjectOut)
def deactivate_project(project_id: int, db: Session = Depends(get_session)):
    with atomic(db):
        row = _get_project(db, project_id)
        row.status = "inactive"
    db.refresh(row)

    logger.info("project_deactivated", project_id=project_id)
    return row


@router.get("/{project_id}/team", response_model=list[TeamMemberOut])
def team(project_id: int, week_start_date: date | None = None, db: Session = Depends(get_session)):
    _get_project(db, project_id)
    return planning.project_team(db, project_id, week_start_date)


@router.get("/{project_id}/planning", response_model=list[PlanningRowOut])
def project_planning(
    project_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_session),
):
    _get_project(db, project_id)
    rows = planning.list_project_planning(db, project_id, start_date, end_date)
    return [PlanningRowOut.from_row(row) for row in rows]


@router.get("/{project_id}/time-entries", response_model=list[TimeEntryOut])
def project_time_entries(
    project_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_session),
):
    _get_project(db, project_id)
    rows = time_entries.list_time_entries(
        db, start_date=start_date, end_date=end_date, project_id=project_id, limit=limit
    )
    return [TimeEntryOut.from_row(row) for row in rows]


@router.get("/{project_id}/budget")
def budget(
    project_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_session),
) -> dict:
    _get_project(db, project_id)
    summary = BudgetCalculator(db).project_budget(project_id, start_date, end_date)
    return {
        "project_id": project_id,
        "period": {"start_date": start_date, "end_date": end_date},
        "summary": summary.to_dict(),
    }
