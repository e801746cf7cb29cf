from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from resource_planning.core.weeks import week_start
from resource_planning.db.session import get_session
from resource_planning.domains.budget.calculator import BudgetCalculator
from resource_planning.domains.planning import service as planning

router = APIRouter(prefix="/planning", tags=["planning"])


class PlanningIn(BaseModel):
    employee_id: int
    project_id: int
    week_start_date: date
    planned_hours: float = Field(..., ge=0)
    created_by_manager_id: int | None = None


class PlanningOut(BaseModel):
    id: int
    employee_id: int
    project_id: int
    week_start_date: date
    planned_hours: float
    actual_hours: float
    created_by_manager_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class PlanningRowOut(PlanningOut):
    employee_name: str
    position: str
    project_name: str
    project_code: str

    @classmethod
    def from_row(cls, row, **extra) -> "PlanningRowOut":
        entry = row.WeeklyPlanning
        return cls(
            id=entry.id,
            employee_id=entry.employee_id,
            project_id=entry.project_id,
            week_start_date=entry.week_start_date,
            planned_hours=float(entry.planned_hours or 0),
            actual_hours=float(entry.actual_hours or 0),
            created_by_manager_id=entry.created_by_manager_id,
            employee_name=row.employee_name,
            position=row.position,
            project_name=row.project_name,
            project_code=row.project_code,
            **extra,
        )


class PlanningBudgetRowOut(PlanningRowOut):
    current_rate: float
    planned_budget: float
    actual_budget: float
    variance_hours: float
    variance_budget: float


@router.get("/{week}", response_model=list[PlanningBudgetRowOut])
def get_week(week: date, db: Session = Depends(get_session)):
    calculator = BudgetCalculator(db)
    rows = planning.list_week(db, week)
    result = []
    for row in rows:
        line = calculator.line(row.WeeklyPlanning)
        result.append(
            PlanningBudgetRowOut.from_row(
                row,
                current_rate=line.rate,
                planned_budget=line.planned_budget,
                actual_budget=line.actual_budget,
                variance_hours=line.variance_hours,
                variance_budget=line.variance_budget,
            )
        )
    return result


@router.post("", response_model=PlanningOut)
def upsert(payload: PlanningIn, db: Session = Depends(get_session)):
    return planning.upsert_planning(
        db,
        employee_id=payload.employee_id,
        project_id=payload.project_id,
        week_start_date=payload.week_start_date,
        planned_hours=payload.planned_hours,
        created_by_manager_id=payload.created_by_manager_id,
    )


@router.get("/{week}/budget")
def week_budget(week: date, db: Session = Depends(get_session)) -> dict:
    summary = BudgetCalculator(db).week_budget(week)
    return {
        "week_start_date": week_start(week),
        "summary": summary.to_dict(),
        "details": [line.to_dict() for line in summary.lines],
    }


@router.delete("/{planning_id}", status_code=204)
def delete(planning_id: int, db: Session = Depends(get_session)):
    planning.delete_planning(db, planning_id)
    return None
