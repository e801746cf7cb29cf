from datetime import date

from resource_planning.domains.planning.service import upsert_planning


def _create(client, **overrides):
    payload = {"name": "Ada Lovelace", "email": "ada@example.com", "position": "Developer"}
    payload.update(overrides)
    return client.post("/employees", json=payload)


def test_list_employees_empty(client):
    response = client.get("/employees")

    assert response.status_code == 200
    assert response.json() == []


def test_create_employee_and_list(client):
    created = _create(client)

    assert created.status_code == 201
    body = created.json()
    assert body["id"] > 0
    assert body["is_active"] is True
    assert body["created_at"]

    listed = client.get("/employees").json()
    assert [e["email"] for e in listed] == ["ada@example.com"]


def test_duplicate_email_rejected(client):
    _create(client)
    second = _create(client, name="Other", email="ADA@example.com")

    assert second.status_code == 409
    assert second.json()["detail"] == "Employee with this email already exists"


def test_missing_fields_rejected(client):
    assert client.post("/employees", json={"name": "Ada"}).status_code == 422
    assert _create(client, email="not-an-email").status_code == 422


def test_update_employee(client):
    employee_id = _create(client).json()["id"]
    _create(client, name="Bob", email="bob@example.com")

    updated = client.put(
        f"/employees/{employee_id}",
        json={"name": "Ada King", "email": "ada@example.com", "position": "Lead"},
    )
    clash = client.put(
        f"/employees/{employee_id}",
        json={"name": "Ada King", "email": "bob@example.com", "position": "Lead"},
    )

    assert updated.status_code == 200
    assert updated.json()["position"] == "Lead"
    assert clash.status_code == 409
    assert client.put("/employees/999", json={"name": "X", "email": "x@example.com", "position": "Y"}).status_code == 404


def test_deactivate_hides_from_active_list(client):
    employee_id = _create(client).json()["id"]

    response = client.delete(f"/employees/{employee_id}")

    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert client.get("/employees").json() == []
    everyone = client.get("/employees", params={"active_only": "false"}).json()
    assert [e["id"] for e in everyone] == [employee_id]
    assert client.get(f"/employees/{employee_id}").status_code == 200
    assert client.delete("/employees/999").status_code == 404


def test_workload_endpoint(client, session, make_employee, make_project):
    employee = make_employee()
    project = make_project()
    upsert_planning(
        session, employee_id=employee.id, project_id=project.id, week_start_date=date(2024, 3, 4), planned_hours=24
    )

    response = client.get(f"/employees/{employee.id}/workload")

    assert response.status_code == 200
    assert response.json() == [
        {"week_start_date": "2024-03-04", "total_planned_hours": 24, "total_actual_hours": 0, "project_count": 1}
    ]
    assert client.get("/employees/999/workload").status_code == 404


def test_update_without_is_active_keeps_employee_deactivated(client):
    employee_id = _create(client).json()["id"]
    client.delete(f"/employees/{employee_id}")

    updated = client.put(
        f"/employees/{employee_id}",
        json={"name": "Ada King", "email": "ada@example.com", "position": "Lead"},
    )

    assert updated.status_code == 200
    assert updated.json()["is_active"] is False
    assert client.get("/employees").json() == []

    reactivated = client.put(
        f"/employees/{employee_id}",
        json={"name": "Ada King", "email": "ada@example.com", "position": "Lead", "is_active": True},
    )
    assert reactivated.json()["is_active"] is True
