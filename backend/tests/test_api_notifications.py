"""
Expiry notifications: the check endpoint and read marking.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from app.db.enums import AmcStatus
from app.db.models.admin import Vehicle, VehicleInsurance
from app.db.models.amc import AmcContract, AmcProvider, Equipment
from app.services.notifications import days_left_text

# far enough ahead that nothing else in the database falls into the window
TODAY = date(2090, 1, 1)


def test_days_left_text():
    assert days_left_text(date(2090, 1, 1), TODAY) == "today"
    assert days_left_text(date(2090, 1, 2), TODAY) == "tomorrow"
    assert days_left_text(date(2090, 1, 11), TODAY) == "in 10 days"


async def _expiring_rows(db) -> None:
    equipment = Equipment(equipment_name="Generator")
    provider = AmcProvider(amcprovider_name="PowerFix")
    vehicle = Vehicle(company_name="Tata", model="Winger", registration_no="ZZ99TEST1")
    db.add_all([equipment, provider, vehicle])
    await db.flush()
    db.add_all(
        [
            AmcContract(
                equipment_id=equipment.equipment_id,
                amcprovider_id=provider.amcprovider_id,
                start_date=date(2089, 1, 15),
                end_date=date(2090, 1, 15),
                amc_value=Decimal("1000"),
                status=AmcStatus.ACTIVE,
            ),
            VehicleInsurance(
                vehicle_id=vehicle.vehicle_id,
                insurance_provider="NIC",
                policy_number="P-1",
                insurance_start_date=date(2089, 1, 20),
                insurance_end_date=date(2090, 1, 20),
            ),
            # outside a 30 day window
            VehicleInsurance(
                vehicle_id=vehicle.vehicle_id,
                insurance_provider="NIC",
                policy_number="P-2",
                insurance_start_date=date(2090, 1, 21),
                insurance_end_date=date(2090, 6, 1),
            ),
        ]
    )
    await db.commit()


async def test_check_is_idempotent(client, db, auth_header):
    await _expiring_rows(db)
    headers = auth_header("admin")
    payload = {"today": TODAY.isoformat(), "lookahead_days": 30}

    first = await client.post("/api/notifications/check", json=payload, headers=headers)
    assert first.status_code == 200
    assert first.json() == {"created": 2}

    again = await client.post("/api/notifications/check", json=payload, headers=headers)
    assert again.json() == {"created": 0}

    unread = (await client.get("/api/notifications?unread_only=true", headers=headers)).json()
    mine = [n for n in unread if n["due_date"].startswith("2090-")]
    assert [n["category"] for n in mine] == ["amc_contract", "vehicle_insurance"]
    assert "ends in 14 days" in mine[0]["message"]

    response = await client.patch(f"/api/notifications/{mine[0]['id']}/read", headers=headers)
    assert response.json()["is_read"] is True
    unread = (await client.get("/api/notifications?unread_only=true", headers=headers)).json()
    assert mine[0]["id"] not in [n["id"] for n in unread]


async def test_mark_unknown_notification(client, auth_header):
    response = await client.patch("/api/notifications/999999/read", headers=auth_header("admin"))
    assert response.status_code == 404
