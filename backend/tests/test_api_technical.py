"""
Technical group workspace: patents, proposals and group-scoped lists.
"""
from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import select

from app.db.enums import EmployeeStatus, Gender
from app.db.models.finance import FinanceProject
from app.db.models.hr import Designation, Employee, TechnicalGroup
from app.services.status import month_label, month_start


@pytest.fixture
async def tg_setup(db, auth_header):
    group = TechnicalGroup(group_name="TESTGRP", group_description="Test group")
    other = TechnicalGroup(group_name="OTHERGRP")
    designation = Designation(designation="ZZT", designation_full="Test Engineer", level=1)
    db.add_all([group, other, designation])
    await db.flush()
    for employee_id, name in (("T001", "Asha"), ("T002", "Bala")):
        db.add(
            Employee(
                employee_id=employee_id,
                employee_name=name,
                join_date=date(2020, 1, 1),
                designation_id=designation.designation_id,
                initial_designation_id=designation.designation_id,
                technical_group_id=group.group_id,
                status=EmployeeStatus.ACTIVE,
                gender=Gender.FEMALE,
                level=1,
                centre="Main",
            )
        )
    await db.commit()
    # group names match case-insensitively
    return auth_header("tg", "testgrp"), auth_header("tg", "OTHERGRP")


PATENT = {
    "patent_title": "Low power NoC router",
    "filing_date": "2023-03-01",
    "application_number": "IN-2023-0001",
    "inventors": ["T001", "T002"],
    "remarks": "",
}


async def test_patent_filing_and_status(client, tg_setup):
    headers, other_headers = tg_setup
    created = await client.post("/api/patents", json=PATENT, headers=headers)
    assert created.status_code == 201
    patent = created.json()
    assert patent["status"] == "Filed"
    assert patent["group_name"] == "TESTGRP"
    assert patent["remarks"] is None
    assert [i["employee_name"] for i in patent["inventors"]] == ["Asha", "Bala"]
    assert patent["status_history"][0]["remarks"] == "Patent filed"
    assert patent["status_history"][0]["update_date"] == "2023-03-01"

    response = await client.put(
        f"/api/patents/{patent['patent_id']}/status",
        json={"new_status": "Granted", "update_date": "2024-02-10"},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["grant_date"] == "2024-02-10"
    assert body["status_history"][0]["new_status"] == "Granted"
    assert body["status_history"][0]["updated_by_group_name"] == "TESTGRP"

    # other groups cannot see it
    response = await client.get(f"/api/patents/{patent['patent_id']}/history", headers=other_headers)
    assert response.status_code == 404


async def test_patent_inventor_rules(client, tg_setup):
    headers, _ = tg_setup
    response = await client.post("/api/patents", json={**PATENT, "inventors": []}, headers=headers)
    assert response.status_code == 400

    response = await client.post("/api/patents", json={**PATENT, "inventors": ["NOPE"]}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Unknown inventor(s)"

    patent = (await client.post("/api/patents", json=PATENT, headers=headers)).json()
    response = await client.put(
        f"/api/patents/{patent['patent_id']}",
        json={**PATENT, "inventors": ["T002"], "status": "Under Review"},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert [i["employee_id"] for i in body["inventors"]] == ["T002"]
    assert body["status_history"][0]["new_status"] == "Under Review"


async def test_tg_user_without_group_is_forbidden(client, auth_header):
    response = await client.get("/api/patents", headers=auth_header("tg", "no-such-group"))
    assert response.status_code == 403


async def test_proposal_status_history(client, tg_setup):
    headers, _ = tg_setup
    created = await client.post(
        "/api/proposals",
        json={
            "proposal_title": "Edge AI testbed",
            "submission_date": "2024-01-15",
            "funding_agency": "DST",
            "amount": "2500000",
            "employees": ["T001"],
        },
        headers=headers,
    )
    assert created.status_code == 201
    proposal = created.json()
    assert proposal["status"] == "Draft"

    response = await client.put(
        f"/api/proposals/{proposal['proposal_id']}/status",
        json={"new_status": "Submitted", "remarks": "Sent to DST"},
        headers=headers,
    )
    assert response.status_code == 200

    proposals = (await client.get("/api/proposals", headers=headers)).json()
    mine = next(p for p in proposals if p["proposal_id"] == proposal["proposal_id"])
    assert mine["status"] == "Submitted"
    assert mine["status_history"][0]["new_status"] == "Submitted"


def _counts(rows: list[dict], key: str) -> dict:
    return {r[key]: r["count"] for r in rows}


async def test_dashboard_trends_and_distributions(client, db, tg_setup):
    headers, _ = tg_setup
    dashboard = "/api/technical/dashboard"
    today = date.today()
    this_month = month_label(month_start(today))

    async def snapshot() -> dict:
        return {
            "projects": _counts((await client.get(f"{dashboard}/projects-per-month", headers=headers)).json(), "month"),
            "patents": _counts((await client.get(f"{dashboard}/patents-per-month", headers=headers)).json(), "month"),
            "status": _counts(
                (await client.get(f"{dashboard}/project-status-distribution", headers=headers)).json(), "status"
            ),
            "type": _counts((await client.get(f"{dashboard}/project-type-distribution", headers=headers)).json(), "type"),
        }

    before = await snapshot()

    group_id = (
        await db.execute(select(TechnicalGroup.group_id).where(TechnicalGroup.group_name == "TESTGRP"))
    ).scalar_one()
    db.add_all([
        FinanceProject(
            project_name="Trend ZZ",
            start_date=today,
            end_date=date(today.year + 2, 12, 31),
            total_value=1000,
            group_id=group_id,
        ),
        FinanceProject(
            project_name="Orphan ZZ",
            start_date=date(2015, 1, 1),
            end_date=date(2016, 12, 31),
            total_value=1000,
        ),
    ])
    await db.commit()
    created = await client.post(
        "/api/patents",
        json={**PATENT, "application_number": "IN-ZZ-TREND", "filing_date": today.isoformat()},
        headers=headers,
    )
    assert created.status_code == 201

    after = await snapshot()
    assert after["projects"][this_month] == before["projects"].get(this_month, 0) + 1
    assert after["patents"][this_month] == before["patents"].get(this_month, 0) + 1
    assert after["status"]["Ongoing"] == before["status"].get("Ongoing", 0) + 1
    assert after["status"]["Completed"] == before["status"].get("Completed", 0) + 1
    assert after["type"]["TESTGRP"] == before["type"].get("TESTGRP", 0) + 1
    assert after["type"]["Unassigned"] == before["type"].get("Unassigned", 0) + 1
