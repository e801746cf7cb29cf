"""Planned vs. actual budget, per planning row and in aggregate.

Each row is priced at the employee's rate on the row's week start date.
Amounts are plain floats; no currency rounding is applied.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from resource_planning.core.observability import tracer
from resource_planning.domains.planning import service as planning
from resource_planning.domains.rates.service import resolve_rate
from resource_planning.models import WeeklyPlanning


def efficiency_ratio(actual_hours: float, planned_hours: float) -> float:
    """Actual over planned hours; 0 when nothing was planned."""
    if planned_hours > 0:
        return actual_hours / planned_hours
    return 0.0


@dataclass
class BudgetLine:
    planning_id: int
    employee_id: int
    project_id: int
    week_start_date: date
    planned_hours: float
    actual_hours: float
    rate: float
    employee_name: Optional[str] = None
    project_name: Optional[str] = None

    @property
    def planned_budget(self) -> float:
        return self.planned_hours * self.rate

    @property
    def actual_budget(self) -> float:
        return self.actual_hours * self.rate

    @property
    def variance_hours(self) -> float:
        return self.actual_hours - self.planned_hours

    @property
    def variance_budget(self) -> float:
        return self.actual_budget - self.planned_budget

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload.update(
            planned_budget=self.planned_budget,
            actual_budget=self.actual_budget,
            variance_hours=self.variance_hours,
            variance_budget=self.variance_budget,
        )
        return payload


@dataclass
class BudgetSummary:
    total_planned_hours: float = 0.0
    total_actual_hours: float = 0.0
    total_planned_budget: float = 0.0
    total_actual_budget: float = 0.0
    lines: List[BudgetLine] = field(default_factory=list, repr=False)

    def add_line(self, line: BudgetLine) -> None:
        self.lines.append(line)
        self.total_planned_hours += line.planned_hours
        self.total_actual_hours += line.actual_hours
        self.total_planned_budget += line.planned_budget
        self.total_actual_budget += line.actual_budget

    @property
    def variance_hours(self) -> float:
        return self.total_actual_hours - self.total_planned_hours

    @property
    def variance_budget(self) -> float:
        return self.total_actual_budget - self.total_planned_budget

    @property
    def efficiency_ratio(self) -> float:
        return efficiency_ratio(self.total_actual_hours, self.total_planned_hours)

    def to_dict(self) -> dict:
        return {
            "total_planned_hours": self.total_planned_hours,
            "total_actual_hours": self.total_actual_hours,
            "total_planned_budget": self.total_planned_budget,
            "total_actual_budget": self.total_actual_budget,
            "variance_hours": self.variance_hours,
            "variance_budget": self.variance_budget,
            "efficiency_ratio": self.efficiency_ratio,
        }


class BudgetCalculator:
    def __init__(self, db: Session):
        self.db = db
        self._rates: Dict[Tuple[int, date], float] = {}

    def rate_for(self, employee_id: int, on_date: date) -> float:
        key = (employee_id, on_date)
        if key not in self._rates:
            self._rates[key] = resolve_rate(self.db, employee_id, on_date)
        return self._rates[key]

    def line(
        self,
        row: WeeklyPlanning,
        employee_name: Optional[str] = None,
        project_name: Optional[str] = None,
    ) -> BudgetLine:
        return BudgetLine(
            planning_id=row.id,
            employee_id=row.employee_id,
            project_id=row.project_id,
            week_start_date=row.week_start_date,
            planned_hours=float(row.planned_hours or 0),
            actual_hours=float(row.actual_hours or 0),
            rate=self.rate_for(row.employee_id, row.week_start_date),
            employee_name=employee_name,
            project_name=project_name,
        )

    def lines(self, rows: Iterable) -> List[BudgetLine]:
        """Price rows produced by ``planning.planning_query``."""
        return [
            self.line(r.WeeklyPlanning, employee_name=r.employee_name, project_name=r.project_name)
            for r in rows
        ]

    def summarize(self, rows: Iterable) -> BudgetSummary:
        summary = BudgetSummary()
        with tracer.start_as_current_span("budget.summarize"):
            for line in self.lines(rows):
                summary.add_line(line)
        return summary

    def week_budget(self, week: date) -> BudgetSummary:
        return self.summarize(planning.list_week(self.db, week))

    def project_budget(
        self, project_id: int, start_date: date | None = None, end_date: date | None = None
    ) -> BudgetSummary:
        return self.summarize(planning.list_project_planning(self.db, project_id, start_date, end_date))

    def employee_budget(
        self, employee_id: int, start_date: date | None = None, end_date: date | None = None
    ) -> BudgetSummary:
        return self.summarize(planning.list_employee_planning(self.db, employee_id, start_date, end_date))
