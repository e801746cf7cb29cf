from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from sqlalchemy import func
from sqlalchemy.orm import Session

from resource_planning.core.errors import ConflictError, NotFoundError
from resource_planning.core.logging import get_logger
from resource_planning.db.session import atomic, get_session
from resource_planning.domains.budget.calculator import BudgetCalculator
from resource_planning.domains.planning import service as planning
from resource_planning.domains.rates import service as rates
from resource_planning.models import Employee

router = APIRouter(prefix="/employees", tags=["employees"])
logger = get_logger(__name__)


class EmployeeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=255)
    position: str = Field(..., min_length=1, max_length=200)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        email = value.strip()
        if "@" not in email:
            raise ValueError("Invalid email format")
        return email


class EmployeeIn(EmployeeBase):
    is_active: bool = True


class EmployeeUpdate(EmployeeBase):
    # Omitted means unchanged; reactivation must be explicit
    is_active: bool | None = None


class EmployeeOut(EmployeeBase):
    id: int
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class RateIn(BaseModel):
    rate_per_hour: float = Field(..., gt=0)
    effective_from: date
    effective_to: date | None = None

    @model_validator(mode="after")
    def check_period(self) -> "RateIn":
        if self.effective_to is not None and self.effective_to < self.effective_from:
            raise ValueError("effective_to cannot be earlier than effective_from")
        return self


class RateOut(BaseModel):
    id: int
    employee_id: int
    rate_per_hour: float
    effective_from: date
    effective_to: date | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ResolvedRateOut(BaseModel):
    employee_id: int
    on_date: date
    rate_per_hour: float


class WorkloadWeekOut(BaseModel):
    week_start_date: date
    total_planned_hours: float
    total_actual_hours: float
    project_count: int


def _get_employee(db: Session, employee_id: int) -> Employee:
    row = db.get(Employee, employee_id)
    if row is None:
        raise NotFoundError("Employee not found")
    return row


def _ensure_unique_email(db: Session, email: str, exclude_id: int | None = None) -> None:
    query = db.query(Employee.id).filter(func.lower(Employee.email) == email.lower())
    if exclude_id is not None:
        query = query.filter(Employee.id != exclude_id)
    if query.first():
        raise ConflictError("Employee with this email already exists")


@router.get("", response_model=list[EmployeeOut])
def list_employees(active_only: bool = True, db: Session = Depends(get_session)):
    query = db.query(Employee)
    if active_only:
        query = query.filter(Employee.is_active.is_(True))
    return query.order_by(Employee.name.asc(), Employee.id.asc()).all()


@router.get("/{employee_id}", response_model=EmployeeOut)
def get_employee(employee_id: int, db: Session = Depends(get_session)):
    return _get_employee(db, employee_id)


@router.post("", response_model=EmployeeOut, status_code=201)
def create_employee(payload: EmployeeIn, db: Session = Depends(get_session)):
    with atomic(db):
        _ensure_unique_email(db, payload.email)
        row = Employee(
            name=payload.name.strip(),
            email=payload.email,
            position=payload.position.strip(),
            is_active=payload.is_active,
        )
        db.add(row)
    db.refresh(row)

    logger.info("employee_created", employee_id=row.id, email=row.email)
    return row


@router.put("/{employee_id}", response_model=EmployeeOut)
def update_employee(employee_id: int, payload: EmployeeUpdate, db: Session = Depends(get_session)):
    with atomic(db):
        row = _get_employee(db, employee_id)
        _ensure_unique_email(db, payload.email, exclude_id=employee_id)
        row.name = payload.name.strip()
        row.email = payload.email
        row.position = payload.position.strip()
        if payload.is_active is not None:
            row.is_active = payload.is_active
    db.refresh(row)

    logger.info("employee_updated", employee_id=employee_id)
    return row


@router.delete("/{employee_id}", response_model=EmployeeOut)
def deactivate_employee(employee_id: int, db: Session = Depends(get_session)):
    with atomic(db):
        row = _get_employee(db, employee_id)
        row.is_active = False
    db.refresh(row)

    logger.info("employee_deactivated", employee_id=employee_id)
    return row


@router.get("/{employee_id}/rates", response_model=list[RateOut])
def list_rates(employee_id: int, db: Session = Depends(get_session)):
    return rates.list_rates(db, employee_id)


@router.post("/{employee_id}/rates", response_model=RateOut, status_code=201)
def add_rate(employee_id: int, payload: RateIn, db: Session = Depends(get_session)):
    return rates.add_rate(
        db,
        employee_id,
        rate_per_hour=payload.rate_per_hour,
        effective_from=payload.effective_from,
        effective_to=payload.effective_to,
    )


@router.get("/{employee_id}/rates/resolve", response_model=ResolvedRateOut)
def resolve_rate(employee_id: int, on_date: date | None = None, db: Session = Depends(get_session)):
    _get_employee(db, employee_id)
    on_date = on_date or date.today()
    return ResolvedRateOut(
        employee_id=employee_id,
        on_date=on_date,
        rate_per_hour=rates.resolve_rate(db, employee_id, on_date),
    )


@router.get("/{employee_id}/workload", response_model=list[WorkloadWeekOut])
def workload(
    employee_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_session),
):
    _get_employee(db, employee_id)
    return planning.employee_workload(db, employee_id, start_date, end_date)


@router.get("/{employee_id}/budget")
def budget(
    employee_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_session),
) -> dict:
    _get_employee(db, employee_id)
    summary = BudgetCalculator(db).employee_budget(employee_id, start_date, end_date)
    return {
        "employee_id": employee_id,
        "period": {"start_date": start_date, "end_date": end_date},
        "summary": summary.to_dict(),
    }
