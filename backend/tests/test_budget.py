from datetime import date

from resource_planning.domains.budget.calculator import (
    BudgetCalculator,
    BudgetLine,
    BudgetSummary,
    efficiency_ratio,
)
from resource_planning.domains.planning.service import upsert_planning
from resource_planning.domains.rates.service import add_rate
from resource_planning.domains.time_entries.service import create_time_entry

WEEK = date(2024, 3, 4)


def _line(planned: float, actual: float, rate: float) -> BudgetLine:
    return BudgetLine(
        planning_id=1,
        employee_id=1,
        project_id=1,
        week_start_date=WEEK,
        planned_hours=planned,
        actual_hours=actual,
        rate=rate,
    )


def test_line_budget_and_variance():
    line = _line(planned=40, actual=35, rate=50)

    assert line.planned_budget == 2000
    assert line.actual_budget == 1750
    assert line.variance_hours == -5
    assert line.variance_budget == -250


def test_efficiency_ratio_is_zero_without_planned_hours():
    assert efficiency_ratio(12, 0) == 0
    summary = BudgetSummary()
    summary.add_line(_line(planned=0, actual=12, rate=40))

    assert summary.total_actual_budget == 480
    assert summary.efficiency_ratio == 0


def test_summary_totals_lines():
    summary = BudgetSummary()
    summary.add_line(_line(planned=40, actual=30, rate=50))
    summary.add_line(_line(planned=10, actual=20, rate=100))

    assert summary.to_dict() == {
        "total_planned_hours": 50,
        "total_actual_hours": 50,
        "total_planned_budget": 3000,
        "total_actual_budget": 3500,
        "variance_hours": 0,
        "variance_budget": 500,
        "efficiency_ratio": 1.0,
    }


def test_rows_are_priced_at_week_start_rate(session, make_employee, make_project):
    employee = make_employee()
    project = make_project()
    add_rate(session, employee.id, rate_per_hour=50, effective_from=date(2024, 1, 1))
    # Takes effect mid-week; the week is still priced at the Monday rate
    add_rate(session, employee.id, rate_per_hour=70, effective_from=date(2024, 3, 6))
    upsert_planning(session, employee_id=employee.id, project_id=project.id, week_start_date=WEEK, planned_hours=10)
    upsert_planning(
        session, employee_id=employee.id, project_id=project.id, week_start_date=date(2024, 3, 11), planned_hours=10
    )

    calculator = BudgetCalculator(session)

    assert calculator.week_budget(WEEK).total_planned_budget == 500
    assert calculator.week_budget(date(2024, 3, 11)).total_planned_budget == 700
    assert calculator.project_budget(project.id).total_planned_budget == 1200
    assert calculator.project_budget(project.id, start_date=date(2024, 3, 10)).total_planned_budget == 700


def test_week_budget_endpoint(client, session, make_employee, make_project):
    ada = make_employee(name="Ada")
    bob = make_employee(name="Bob")
    project = make_project(name="Portal")
    add_rate(session, ada.id, rate_per_hour=50, effective_from=date(2024, 1, 1))
    add_rate(session, bob.id, rate_per_hour=40, effective_from=date(2024, 1, 1))
    upsert_planning(session, employee_id=ada.id, project_id=project.id, week_start_date=WEEK, planned_hours=20)
    upsert_planning(session, employee_id=bob.id, project_id=project.id, week_start_date=WEEK, planned_hours=10)
    create_time_entry(session, employee_id=ada.id, project_id=project.id, work_date=WEEK, hours_worked=8)
    create_time_entry(session, employee_id=bob.id, project_id=project.id, work_date=WEEK, hours_worked=2)

    body = client.get("/planning/2024-03-04/budget").json()

    assert body["week_start_date"] == "2024-03-04"
    assert body["summary"] == {
        "total_planned_hours": 30,
        "total_actual_hours": 10,
        "total_planned_budget": 1400,
        "total_actual_budget": 480,
        "variance_hours": -20,
        "variance_budget": -920,
        "efficiency_ratio": 10 / 30,
    }
    details = {d["employee_name"]: d for d in body["details"]}
    assert details["Ada"]["rate"] == 50
    assert details["Ada"]["variance_budget"] == -600
    assert details["Bob"]["project_name"] == "Portal"


def test_project_and_employee_budget_endpoints(client, session, make_employee, make_project):
    employee = make_employee()
    project = make_project()
    add_rate(session, employee.id, rate_per_hour=25, effective_from=date(2024, 1, 1))
    upsert_planning(session, employee_id=employee.id, project_id=project.id, week_start_date=WEEK, planned_hours=0)
    create_time_entry(session, employee_id=employee.id, project_id=project.id, work_date=WEEK, hours_worked=4)

    project_budget = client.get(f"/projects/{project.id}/budget").json()
    assert project_budget["project_id"] == project.id
    assert project_budget["period"] == {"start_date": None, "end_date": None}
    assert project_budget["summary"]["total_actual_budget"] == 100
    assert project_budget["summary"]["efficiency_ratio"] == 0

    employee_budget = client.get(
        f"/employees/{employee.id}/budget", params={"start_date": "2024-03-01", "end_date": "2024-03-31"}
    ).json()
    assert employee_budget["period"] == {"start_date": "2024-03-01", "end_date": "2024-03-31"}
    assert employee_budget["summary"]["total_actual_hours"] == 4

    assert client.get("/projects/999/budget").status_code == 404
    assert client.get("/employees/999/budget").status_code == 404
