"""
Admin staff, contractors, vehicles and the admin dashboard counts.
"""
from __future__ import annotations

from datetime import date, timedelta

import pytest


@pytest.fixture
async def department(client, auth_header):
    headers = auth_header("admin")
    response = await client.post(
        "/api/admin/departments", json={"department_name": "Stores ZZ"}, headers=headers
    )
    assert response.status_code == 201
    return response.json()["department_id"], headers


def _staff(department_id: int, name: str = "Ravi Kumar", **extra) -> dict:
    return {
        "name": name,
        "department_id": department_id,
        "joining_date": "2022-04-01",
        "gender": "MALE",
        **extra,
    }


async def _summary(client, headers) -> dict:
    response = await client.get("/api/admin/dashboard/summary", headers=headers)
    assert response.status_code == 200
    return response.json()


async def test_duplicate_department(client, department):
    _, headers = department
    response = await client.post(
        "/api/admin/departments", json={"department_name": "Stores ZZ"}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Department already exists"


async def test_duplicate_active_staff_name(client, department):
    department_id, headers = department
    first = await client.post("/api/admin/staff", json=_staff(department_id), headers=headers)
    assert first.status_code == 201
    assert first.json()["department_name"] == "Stores ZZ"

    # matched case-insensitively after trimming
    again = await client.post(
        "/api/admin/staff", json=_staff(department_id, name="  ravi kumar "), headers=headers
    )
    assert again.status_code == 400
    assert again.json()["detail"] == (
        "An active staff member with this name already exists in the department"
    )

    # an inactive namesake is allowed
    inactive = await client.post(
        "/api/admin/staff", json=_staff(department_id, status="INACTIVE"), headers=headers
    )
    assert inactive.status_code == 201


async def test_staff_with_salary_cannot_be_deleted(client, department):
    department_id, headers = department
    staff = (await client.post("/api/admin/staff", json=_staff(department_id), headers=headers)).json()
    salary = await client.post(
        "/api/admin/staff/salaries",
        json={"staff_id": staff["staff_id"], "net_salary": "32000", "payment_date": "2024-05-31"},
        headers=headers,
    )
    assert salary.status_code == 201

    response = await client.delete(f"/api/admin/staff/{staff['staff_id']}", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete staff member with salary records"

    await client.delete(f"/api/admin/staff/salaries/{salary.json()['salary_id']}", headers=headers)
    response = await client.delete(f"/api/admin/staff/{staff['staff_id']}", headers=headers)
    assert response.json() == {"message": "Staff member deleted successfully"}


async def test_contractor_with_mapping_cannot_be_deleted(client, department):
    department_id, headers = department
    contractor = await client.post(
        "/api/admin/contractors",
        json={"contractor_company_name": "CleanCo ZZ", "contact_person": "Asha"},
        headers=headers,
    )
    assert contractor.status_code == 201
    contractor_id = contractor.json()["contractor_id"]
    mapping = await client.post(
        "/api/admin/contractors/mappings",
        json={
            "contractor_id": contractor_id,
            "department_id": department_id,
            "start_date": "2024-01-01",
            "end_date": "2024-12-31",
        },
        headers=headers,
    )
    assert mapping.status_code == 201

    response = await client.delete(f"/api/admin/contractors/{contractor_id}", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete contractor with existing department mappings"

    await client.delete(f"/api/admin/contractors/mappings/{mapping.json()['contract_id']}", headers=headers)
    response = await client.delete(f"/api/admin/contractors/{contractor_id}", headers=headers)
    assert response.json() == {"message": "Contractor deleted successfully"}


@pytest.fixture
async def vehicle(client, auth_header):
    headers = auth_header("admin")
    response = await client.post(
        "/api/admin/vehicles",
        json={"company_name": "Tata", "model": "Nexon", "registration_no": "ZZ-01-AB-1234"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["vehicle_id"], headers


async def test_duplicate_registration_number(client, vehicle):
    _, headers = vehicle
    response = await client.post(
        "/api/admin/vehicles",
        json={"company_name": "Maruti", "model": "Ciaz", "registration_no": "ZZ-01-AB-1234"},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Registration number already exists"


async def test_overlapping_servicing_rejected(client, vehicle):
    vehicle_id, headers = vehicle
    service = {
        "vehicle_id": vehicle_id,
        "service_date": "2024-01-10",
        "next_service_date": "2024-07-10",
        "service_description": "General service",
        "servicing_amount": "4500",
    }
    response = await client.post("/api/admin/vehicles/servicing", json=service, headers=headers)
    assert response.status_code == 201

    overlapping = {**service, "service_date": "2024-06-01", "next_service_date": "2024-12-01"}
    response = await client.post("/api/admin/vehicles/servicing", json=overlapping, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Service period overlaps with an existing service record"

    later = {**service, "service_date": "2024-07-11", "next_service_date": "2025-01-11"}
    response = await client.post("/api/admin/vehicles/servicing", json=later, headers=headers)
    assert response.status_code == 201


async def test_overlapping_insurance_rejected(client, vehicle):
    vehicle_id, headers = vehicle
    policy = {
        "vehicle_id": vehicle_id,
        "insurance_provider": "New India",
        "policy_number": "POL-1",
        "insurance_start_date": "2024-01-01",
        "insurance_end_date": "2024-12-31",
    }
    response = await client.post("/api/admin/vehicles/insurance", json=policy, headers=headers)
    assert response.status_code == 201

    renewal = {**policy, "policy_number": "POL-2", "insurance_start_date": "2024-12-01"}
    renewal["insurance_end_date"] = "2025-11-30"
    response = await client.post("/api/admin/vehicles/insurance", json=renewal, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Insurance period overlaps with an existing policy"

    # records block deleting the vehicle
    response = await client.delete(f"/api/admin/vehicles/{vehicle_id}", headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete vehicle with insurance or servicing records"


async def test_summary_counts_follow_rows(client, department):
    department_id, headers = department
    before = await _summary(client, headers)
    today = date.today()

    await client.post("/api/admin/staff", json=_staff(department_id, name="Active One"), headers=headers)
    await client.post(
        "/api/admin/staff", json=_staff(department_id, name="Former One", status="INACTIVE"), headers=headers
    )

    current = (await client.post(
        "/api/admin/contractors",
        json={"contractor_company_name": "Guards ZZ", "contact_person": "Mohan"},
        headers=headers,
    )).json()
    await client.post(
        "/api/admin/contractors",
        json={"contractor_company_name": "Idle ZZ", "contact_person": "Lata"},
        headers=headers,
    )
    await client.post(
        "/api/admin/contractors/mappings",
        json={
            "contractor_id": current["contractor_id"],
            "department_id": department_id,
            "start_date": (today - timedelta(days=30)).isoformat(),
            "end_date": (today + timedelta(days=30)).isoformat(),
        },
        headers=headers,
    )

    await client.post(
        "/api/admin/vehicles",
        json={"company_name": "Mahindra", "model": "Bolero", "registration_no": "ZZ-09-CD-9"},
        headers=headers,
    )

    equipment = (await client.post(
        "/api/amc/equipments", json={"equipment_name": "Lift ZZ", "location": "Block A"}, headers=headers
    )).json()
    provider = (await client.post(
        "/api/amc/providers", json={"amcprovider_name": "LiftCare ZZ"}, headers=headers
    )).json()
    contract = await client.post(
        "/api/amc/contracts",
        json={
            "equipment_id": equipment["equipment_id"],
            "amcprovider_id": provider["amcprovider_id"],
            "start_date": today.isoformat(),
            "end_date": (today + timedelta(days=365)).isoformat(),
            "amc_value": "12000",
        },
        headers=headers,
    )
    assert contract.status_code == 201

    after = await _summary(client, headers)
    delta = {key: after[key] - before[key] for key in after}
    assert delta == {
        "total_staff": 2,
        "active_staff": 1,
        "total_contractors": 2,
        "active_contractors": 1,
        "total_vehicles": 1,
        "operational_vehicles": 1,
        "total_amc_contracts": 1,
        "active_amc_contracts": 1,
    }
