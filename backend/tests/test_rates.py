from datetime import date

import pytest

from resource_planning.core.errors import NotFoundError, ValidationError
from resource_planning.domains.rates.service import add_rate, list_rates, resolve_rate
from resource_planning.models import RateHistory


def test_new_open_rate_closes_previous_row(session, make_employee):
    employee = make_employee()
    add_rate(session, employee.id, rate_per_hour=50, effective_from=date(2024, 1, 1))
    add_rate(session, employee.id, rate_per_hour=60, effective_from=date(2024, 3, 1))

    assert resolve_rate(session, employee.id, date(2024, 2, 15)) == 50
    assert resolve_rate(session, employee.id, date(2024, 3, 1)) == 60

    history = list_rates(session, employee.id)
    assert [float(r.rate_per_hour) for r in history] == [60, 50]
    assert history[0].effective_to is None
    assert history[1].effective_to == date(2024, 2, 29)


def test_rate_is_zero_without_covering_row(session, make_employee):
    employee = make_employee()
    assert resolve_rate(session, employee.id, date(2024, 1, 1)) == 0

    add_rate(session, employee.id, rate_per_hour=40, effective_from=date(2024, 6, 1))

    assert resolve_rate(session, employee.id, date(2024, 5, 31)) == 0
    assert resolve_rate(session, employee.id, date(2030, 1, 1)) == 40


def test_bounded_rate_leaves_open_row_untouched(session, make_employee):
    employee = make_employee()
    add_rate(session, employee.id, rate_per_hour=50, effective_from=date(2024, 1, 1))
    add_rate(
        session,
        employee.id,
        rate_per_hour=80,
        effective_from=date(2024, 7, 1),
        effective_to=date(2024, 7, 31),
    )

    open_rows = (
        session.query(RateHistory)
        .filter(RateHistory.employee_id == employee.id, RateHistory.effective_to.is_(None))
        .all()
    )
    assert len(open_rows) == 1
    # Overlap: the later effective_from wins inside July, the open rate outside it
    assert resolve_rate(session, employee.id, date(2024, 7, 15)) == 80
    assert resolve_rate(session, employee.id, date(2024, 8, 1)) == 50


def test_backdated_rate_resolves_by_latest_effective_from(session, make_employee):
    employee = make_employee()
    session.add_all(
        [
            RateHistory(employee_id=employee.id, rate_per_hour=30, effective_from=date(2024, 1, 1)),
            RateHistory(employee_id=employee.id, rate_per_hour=35, effective_from=date(2024, 2, 1)),
        ]
    )
    session.commit()

    assert resolve_rate(session, employee.id, date(2024, 1, 20)) == 30
    assert resolve_rate(session, employee.id, date(2024, 2, 20)) == 35


@pytest.mark.parametrize("rate", [0, -10])
def test_non_positive_rate_rejected(session, make_employee, rate):
    employee = make_employee()
    with pytest.raises(ValidationError):
        add_rate(session, employee.id, rate_per_hour=rate, effective_from=date(2024, 1, 1))
    assert session.query(RateHistory).count() == 0


def test_rate_for_unknown_employee(session):
    with pytest.raises(NotFoundError):
        add_rate(session, 999, rate_per_hour=50, effective_from=date(2024, 1, 1))


def test_rates_api_round_trip(client, make_employee):
    employee = make_employee()

    first = client.post(
        f"/employees/{employee.id}/rates",
        json={"rate_per_hour": 50, "effective_from": "2024-01-01"},
    )
    second = client.post(
        f"/employees/{employee.id}/rates",
        json={"rate_per_hour": 60, "effective_from": "2024-03-01"},
    )
    assert first.status_code == 201
    assert second.status_code == 201

    history = client.get(f"/employees/{employee.id}/rates").json()
    assert [r["rate_per_hour"] for r in history] == [60, 50]
    assert history[1]["effective_to"] == "2024-02-29"

    resolved = client.get(f"/employees/{employee.id}/rates/resolve", params={"on_date": "2024-02-15"})
    assert resolved.json() == {"employee_id": employee.id, "on_date": "2024-02-15", "rate_per_hour": 50}


def test_rates_api_validation(client, make_employee):
    employee = make_employee()

    zero = client.post(f"/employees/{employee.id}/rates", json={"rate_per_hour": 0, "effective_from": "2024-01-01"})
    inverted = client.post(
        f"/employees/{employee.id}/rates",
        json={"rate_per_hour": 10, "effective_from": "2024-02-01", "effective_to": "2024-01-01"},
    )
    missing = client.post("/employees/999/rates", json={"rate_per_hour": 10, "effective_from": "2024-01-01"})

    assert zero.status_code == 422
    assert inverted.status_code == 422
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Employee not found"


def test_sub_cent_rates_are_kept_as_given(client, make_employee):
    employee = make_employee()

    tiny = client.post(
        f"/employees/{employee.id}/rates",
        json={"rate_per_hour": 0.001, "effective_from": "2024-01-01", "effective_to": "2024-01-31"},
    )
    precise = client.post(
        f"/employees/{employee.id}/rates",
        json={"rate_per_hour": 33.337, "effective_from": "2024-02-01"},
    )

    assert tiny.status_code == 201
    assert tiny.json()["rate_per_hour"] == 0.001
    assert precise.json()["rate_per_hour"] == 33.337

    january = client.get(f"/employees/{employee.id}/rates/resolve", params={"on_date": "2024-01-15"})
    february = client.get(f"/employees/{employee.id}/rates/resolve", params={"on_date": "2024-02-15"})
    assert january.json()["rate_per_hour"] == 0.001
    assert february.json()["rate_per_hour"] == 33.337
