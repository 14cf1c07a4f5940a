"""
AMC equipment, providers and contracts.
"""
from __future__ import annotations

from datetime import date, timedelta

import pytest


@pytest.fixture
async def amc_refs(client, auth_header):
    headers = auth_header("admin")
    equipment = await client.post(
        "/api/amc/equipments", json={"equipment_name": "  Chiller  ", "location": "Roof"}, headers=headers
    )
    provider = await client.post(
        "/api/amc/providers", json={"amcprovider_name": "CoolCare"}, headers=headers
    )
    assert equipment.status_code == 201
    assert provider.status_code == 201
    return equipment.json(), provider.json(), headers


def _contract(equipment_id: int, provider_id: int, start: date, end: date, value: str = "5000") -> dict:
    return {
        "equipment_id": equipment_id,
        "amcprovider_id": provider_id,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "amc_value": value,
    }


async def test_names_are_trimmed(amc_refs):
    equipment, _, _ = amc_refs
    assert equipment["equipment_name"] == "Chiller"


async def test_contract_lifecycle(client, amc_refs):
    equipment, provider, headers = amc_refs
    today = date.today()
    payload = _contract(equipment["equipment_id"], provider["amcprovider_id"], today, today + timedelta(days=365))

    created = await client.post("/api/amc/contracts", json=payload, headers=headers)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "ACTIVE"
    assert body["equipment_name"] == "Chiller"
    assert body["amcprovider_name"] == "CoolCare"

    # one active contract per equipment
    again = await client.post("/api/amc/contracts", json=payload, headers=headers)
    assert again.status_code == 400

    # referenced equipment cannot be deleted
    response = await client.delete(f"/api/amc/equipments/{equipment['equipment_id']}", headers=headers)
    assert response.status_code == 400
    response = await client.delete(f"/api/amc/providers/{provider['amcprovider_id']}", headers=headers)
    assert response.status_code == 400

    deleted = await client.delete(f"/api/amc/contracts/{body['amccontract_id']}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["deletedId"] == body["amccontract_id"]
    response = await client.delete(f"/api/amc/equipments/{equipment['equipment_id']}", headers=headers)
    assert response.status_code == 200


async def test_contract_validation(client, amc_refs):
    equipment, provider, headers = amc_refs
    today = date.today()

    response = await client.post("/api/amc/contracts", json={"equipment_id": 1}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields"

    bad_dates = _contract(equipment["equipment_id"], provider["amcprovider_id"], today, today - timedelta(days=1))
    response = await client.post("/api/amc/contracts", json=bad_dates, headers=headers)
    assert response.status_code == 400

    zero = _contract(equipment["equipment_id"], provider["amcprovider_id"], today, today, value="0")
    response = await client.post("/api/amc/contracts", json=zero, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "AMC value must be greater than zero"

    unknown = _contract(999999, provider["amcprovider_id"], today, today)
    response = await client.post("/api/amc/contracts", json=unknown, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid equipment ID"
