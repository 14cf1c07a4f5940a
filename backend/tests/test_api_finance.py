"""
Finance projects, budget fields, expenditures, grants and the finance dashboard.
"""
from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import func, select

from app.db.models.finance import BudgetEntry, Expenditure, GrantReceived, ProjectBudgetFieldMapping

FIELD_NOT_MAPPED = "Selected budget field is not mapped to this project"


def _project(name: str, **extra) -> dict:
    today = date.today()
    return {
        "project_name": name,
        "start_date": (today - timedelta(days=365)).isoformat(),
        "end_date": (today + timedelta(days=365)).isoformat(),
        "total_value": "987654321",
        **extra,
    }


async def _default_fields(client, headers) -> dict[str, int]:
    fields = (await client.get("/api/finance/budget-fields", headers=headers)).json()
    return {f["field_name"]: f["field_id"] for f in fields if f["is_default"]}


@pytest.fixture
async def project(client, auth_header):
    headers = auth_header("finance")
    response = await client.post("/api/finance/projects", json=_project("Edge AI ZZ"), headers=headers)
    assert response.status_code == 201
    return response.json()["project_id"], headers


async def test_new_project_maps_default_fields(client, project):
    project_id, headers = project
    defaults = await _default_fields(client, headers)
    fields = (await client.get(f"/api/finance/projects/{project_id}/budget-fields", headers=headers)).json()
    assert {f["field_id"] for f in fields} == set(defaults.values())
    assert "Manpower" in defaults


async def test_expenditure_needs_mapped_field(client, project):
    project_id, headers = project
    custom = await client.post("/api/finance/budget-fields", json={"field_name": "Test Rig ZZ"}, headers=headers)
    assert custom.status_code == 201
    field_id = custom.json()["field_id"]
    entry = {"field_id": field_id, "amount_spent": "1200", "expenditure_date": "2024-05-20"}

    response = await client.post(f"/api/finance/projects/{project_id}/expenditures", json=entry, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == FIELD_NOT_MAPPED

    mapped = await client.post(
        f"/api/finance/projects/{project_id}/budget-fields",
        json={"field_id": field_id, "is_custom": True},
        headers=headers,
    )
    assert mapped.status_code == 201

    response = await client.post(f"/api/finance/projects/{project_id}/expenditures", json=entry, headers=headers)
    assert response.status_code == 201
    body = response.json()
    assert body["field_name"] == "Test Rig ZZ"
    assert body["year_number"] == 2024
    assert body["period_number"] == 2


async def test_default_field_cannot_be_deleted(client, auth_header):
    headers = auth_header("finance")
    defaults = await _default_fields(client, headers)
    response = await client.delete(f"/api/finance/budget-fields/{defaults['Manpower']}", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete default budget fields"


async def test_budget_entries_are_replaced(client, project):
    project_id, headers = project
    manpower = (await _default_fields(client, headers))["Manpower"]
    url = f"/api/finance/projects/{project_id}/budget-entries"

    first = [
        {"field_id": manpower, "year_number": 1, "amount": "100"},
        {"field_id": manpower, "year_number": 2, "amount": "200"},
    ]
    response = await client.post(url, json={"entries": first}, headers=headers)
    assert response.json() == {"message": "Budget entries saved successfully"}

    response = await client.post(
        url, json={"entries": [{"field_id": manpower, "year_number": 1, "amount": "50"}]}, headers=headers
    )
    assert response.status_code == 200
    entries = (await client.get(url, headers=headers)).json()
    assert [(e["year_number"], e["amount"]) for e in entries] == [(1, 50.0)]

    response = await client.post(
        url, json={"entries": [{"field_id": 999999, "year_number": 1, "amount": "5"}]}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid entry data"


async def test_grant_allocations_and_bulk_edit(client, project):
    project_id, headers = project
    defaults = await _default_fields(client, headers)
    url = f"/api/finance/projects/{project_id}/grant-received"

    response = await client.post(
        "/api/finance/grant-received",
        json={
            "project_id": project_id,
            "received_date": "2024-04-15",
            "remarks": "First release",
            "allocations": [
                {"field_id": defaults["Manpower"], "amount": "100000"},
                {"field_id": defaults["Equipment"], "amount": None},
            ],
        },
        headers=headers,
    )
    assert response.status_code == 201
    grants = (await client.get(url, headers=headers)).json()
    assert [(g["field_name"], g["amount"]) for g in grants] == [("Manpower", 100000.0)]

    response = await client.post(
        "/api/finance/grant-received/bulk-edit",
        json={
            "project_id": project_id,
            "received_date": "2024-04-15",
            "grants": [
                {"field_id": defaults["Equipment"], "amount": "250000", "remarks": " revised "},
                {"field_id": defaults["Travel"], "amount": None},
            ],
        },
        headers=headers,
    )
    assert response.json() == {"message": "Grant received entries updated successfully"}
    grants = (await client.get(url, headers=headers)).json()
    assert [(g["field_name"], g["amount"], g["remarks"]) for g in grants] == [
        ("Equipment", 250000.0, "revised")
    ]

    response = await client.delete(f"/api/finance/grant-received/{project_id}/2024-04-15", headers=headers)
    assert response.json() == {"message": "Grant entries deleted successfully", "count": 1}
    response = await client.delete(f"/api/finance/grant-received/{project_id}/2024-04-15", headers=headers)
    assert response.status_code == 404


async def test_project_delete_removes_children(client, db, project):
    project_id, headers = project
    manpower = (await _default_fields(client, headers))["Manpower"]
    await client.post(
        f"/api/finance/projects/{project_id}/budget-entries",
        json={"entries": [{"field_id": manpower, "year_number": 1, "amount": "500"}]},
        headers=headers,
    )
    await client.post(
        f"/api/finance/projects/{project_id}/expenditures",
        json={"field_id": manpower, "amount_spent": "75", "expenditure_date": "2024-02-01"},
        headers=headers,
    )
    await client.post(
        "/api/finance/grant-received",
        json={
            "project_id": project_id,
            "received_date": "2024-01-10",
            "allocations": [{"field_id": manpower, "amount": "500"}],
        },
        headers=headers,
    )

    response = await client.delete(f"/api/finance/projects/{project_id}", headers=headers)
    assert response.json() == {"message": "Project deleted successfully"}
    for model in (GrantReceived, Expenditure, BudgetEntry, ProjectBudgetFieldMapping):
        remaining = await db.execute(
            select(func.count()).select_from(model).where(model.project_id == project_id)
        )
        assert remaining.scalar_one() == 0
    response = await client.get(f"/api/finance/projects/{project_id}", headers=headers)
    assert response.status_code == 404


async def test_dashboard_budget_views(client, auth_header):
    headers = auth_header("finance")
    dashboard = "/api/finance/dashboard"
    before = {r["status"]: r for r in (await client.get(f"{dashboard}/project-status", headers=headers)).json()}

    created = await client.post(
        "/api/finance/projects", json=_project("Quantum ZZ", funding_agency="ZZ Agency"), headers=headers
    )
    project_id = created.json()["project_id"]
    manpower = (await _default_fields(client, headers))["Manpower"]
    await client.post(
        f"/api/finance/projects/{project_id}/budget-entries",
        json={"entries": [{"field_id": manpower, "year_number": 2031, "amount": "1000"}]},
        headers=headers,
    )
    await client.post(
        f"/api/finance/projects/{project_id}/expenditures",
        json={"field_id": manpower, "amount_spent": "850", "expenditure_date": "2031-03-10"},
        headers=headers,
    )
    for amount in ("100", "50"):
        await client.post(
            "/api/finance/grant-received",
            json={
                "project_id": project_id,
                "received_date": "2001-01-05",
                "allocations": [{"field_id": manpower, "amount": amount}],
            },
            headers=headers,
        )

    after = {r["status"]: r for r in (await client.get(f"{dashboard}/project-status", headers=headers)).json()}
    ongoing_before = before.get("Ongoing", {"count": 0, "value": 0})
    assert after["Ongoing"]["count"] == ongoing_before["count"] + 1
    assert after["Ongoing"]["value"] == pytest.approx(ongoing_before["value"] + 987654321)

    rows = (await client.get(f"{dashboard}/remaining-budget", headers=headers)).json()
    row = next(r for r in rows if r["project_name"] == "Quantum ZZ")
    assert row["total_expenditure"] == 850
    assert row["remaining_budget"] == 987654321 - 850

    rows = (await client.get(f"{dashboard}/funding-overview", headers=headers)).json()
    agency = next(r for r in rows if r["funding_agency"] == "ZZ Agency")
    assert agency["project_count"] == 1
    assert agency["total_expenditure"] == 850
    assert agency["remaining_budget"] == 987654321 - 850

    rows = (await client.get(f"{dashboard}/grant-history", headers=headers)).json()
    history = [r for r in rows if r["project_name"] == "Quantum ZZ"]
    assert history == [{"received_date": "2001-01-05", "project_name": "Quantum ZZ", "amount_received": 150.0}]

    rows = (await client.get(f"{dashboard}/fy-budget-remaining", params={"year": 2031}, headers=headers)).json()
    fy = next(r for r in rows if r["project_name"] == "Quantum ZZ")
    assert fy["fy_budget_allocated"] == 1000
    assert fy["fy_expenditure"] == 850
    assert fy["fy_budget_remaining"] == 150
    assert fy["utilization_status"] == "High Utilization"
    assert fy["utilization_percentage"] == 85

    # a year without budget lists nothing for the project
    rows = (await client.get(f"{dashboard}/fy-budget-remaining", params={"year": 2032}, headers=headers)).json()
    assert all(r["project_name"] != "Quantum ZZ" for r in rows)
