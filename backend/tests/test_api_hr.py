"""
HR employees and the promotion chain kept in sync with the employee row.
"""
from __future__ import annotations

import pytest

from app.db.models.hr import Designation, TechnicalGroup


@pytest.fixture
async def hr_refs(db, user_header):
    designations = [
        Designation(designation="ZZ-PE", designation_full="Project Engineer", level=1),
        Designation(designation="ZZ-SPE", designation_full="Senior Project Engineer", level=2),
        Designation(designation="ZZ-PM", designation_full="Project Manager", level=3),
    ]
    group = TechnicalGroup(group_name="HRTESTGRP")
    db.add_all([*designations, group])
    await db.commit()
    headers = await user_header("hr")
    return [d.designation_id for d in designations], group.group_id, headers


@pytest.fixture
async def employee(client, hr_refs):
    (pe, _, _), group_id, headers = hr_refs
    response = await client.post(
        "/api/hr/employees",
        json={
            "employee_id": "ZZ100",
            "employee_name": "Kavya",
            "join_date": "2020-07-01",
            "designation_id": pe,
            "initial_designation_id": pe,
            "technical_group_id": group_id,
            "gender": "FEMALE",
            "centre": "Pune",
        },
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


async def test_employee_level_defaults_to_designation(employee, hr_refs):
    assert employee["level"] == 1
    assert employee["designation"] == "ZZ-PE"
    assert employee["technical_group"] == "HRTESTGRP"


async def test_duplicate_employee_id(client, employee, hr_refs):
    (pe, _, _), group_id, headers = hr_refs
    response = await client.post(
        "/api/hr/employees",
        json={
            "employee_id": "ZZ100",
            "employee_name": "Someone",
            "designation_id": pe,
            "initial_designation_id": pe,
            "technical_group_id": group_id,
            "gender": "MALE",
            "centre": "Pune",
        },
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Employee ID already exists"


async def test_promotion_chain_updates_employee(client, employee, hr_refs):
    (pe, spe, pm), _, headers = hr_refs

    response = await client.post(
        "/api/hr/services/promotions",
        json={"employee_id": "ZZ100", "to_designation_id": pm, "effective_date": "2024-01-01", "level": 3},
        headers=headers,
    )
    assert response.status_code == 201
    later = response.json()
    assert later["from_designation_id"] == pe

    # inserting an earlier link relinks the later one
    response = await client.post(
        "/api/hr/services/promotions",
        json={"employee_id": "ZZ100", "to_designation_id": spe, "effective_date": "2022-01-01", "level": 2},
        headers=headers,
    )
    assert response.status_code == 201

    promotions = (
        await client.get("/api/hr/services/promotions?employee_id=ZZ100", headers=headers)
    ).json()
    assert [(p["from_designation"], p["to_designation"]) for p in promotions] == [
        ("ZZ-SPE", "ZZ-PM"),
        ("ZZ-PE", "ZZ-SPE"),
    ]
    current = (await client.get("/api/hr/employees/ZZ100", headers=headers)).json()
    assert (current["designation_id"], current["level"]) == (pm, 3)

    # moving the later link before the earlier one is rejected
    response = await client.put(
        f"/api/hr/services/promotions/{later['id']}",
        json={"effective_date": "2021-01-01"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Promotion date must be after the previous promotion date"

    # dropping the last link falls back to the previous one
    response = await client.delete(f"/api/hr/services/promotions/{later['id']}", headers=headers)
    assert response.status_code == 200
    current = (await client.get("/api/hr/employees/ZZ100", headers=headers)).json()
    assert (current["designation_id"], current["level"]) == (spe, 2)


async def test_promotion_before_join_date(client, employee, hr_refs):
    (_, spe, _), _, headers = hr_refs
    response = await client.post(
        "/api/hr/services/promotions",
        json={"employee_id": "ZZ100", "to_designation_id": spe, "effective_date": "2019-01-01", "level": 2},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Promotion date cannot be before the employee's join date"


async def test_transfer_moves_employee(client, db, employee, hr_refs):
    _, group_id, headers = hr_refs
    target = TechnicalGroup(group_name="HRTARGETGRP")
    db.add(target)
    await db.commit()

    response = await client.post(
        "/api/hr/services/transfers",
        json={"employee_id": "ZZ100", "to_group_id": group_id, "transfer_date": "2024-03-01"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Employee is already in this group"

    response = await client.post(
        "/api/hr/services/transfers",
        json={"employee_id": "ZZ100", "to_group_id": target.group_id, "transfer_date": "2024-03-01"},
        headers=headers,
    )
    assert response.status_code == 201
    transfer = response.json()
    assert transfer["from_group"] == "HRTESTGRP"
    assert transfer["to_group"] == "HRTARGETGRP"
    assert transfer["employee_name"] == "Kavya"

    current = (await client.get("/api/hr/employees/ZZ100", headers=headers)).json()
    assert current["technical_group"] == "HRTARGETGRP"


async def test_attrition_marks_employee_inactive(client, employee, hr_refs):
    _, _, headers = hr_refs
    response = await client.post(
        "/api/hr/services/attrition",
        json={"employee_id": "ZZ100", "reason_for_leaving": "Higher studies", "last_date": "2024-08-31"},
        headers=headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert (body["year"], body["month"]) == (2024, 8)
    assert body["employee_name"] == "Kavya"

    current = (await client.get("/api/hr/employees/ZZ100", headers=headers)).json()
    assert current["status"] == "inactive"


async def test_contract_renewal_lists_employee_name(client, employee, hr_refs):
    _, _, headers = hr_refs
    response = await client.post(
        "/api/hr/services/contracts",
        json={
            "employee_id": "ZZ100",
            "contract_type": " Fixed term ",
            "start_date": "2024-07-01",
            "end_date": "2025-06-30",
            "duration_months": 12,
        },
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["contract_type"] == "Fixed term"

    renewals = (await client.get("/api/hr/services/contracts", headers=headers)).json()
    mine = [r for r in renewals if r["employee_id"] == "ZZ100"]
    assert [(r["employee_name"], r["end_date"]) for r in mine] == [("Kavya", "2025-06-30")]

    response = await client.post(
        "/api/hr/services/contracts",
        json={"employee_id": "ZZ100", "contract_type": "Fixed term", "start_date": "2024-07-01", "end_date": "2024-06-30"},
        headers=headers,
    )
    assert response.status_code == 400
