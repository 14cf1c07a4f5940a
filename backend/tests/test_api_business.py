"""
Business clients, entities, purchase orders and the payment-driven PO status.
"""
from __future__ import annotations

import pytest

CLIENT = {
    "client_name": "Acme Corp",
    "contact_person": "R. Rao",
    "contact_number": "9800000000",
    "email": "rao@acme.test",
    "address": "Pune",
}


@pytest.fixture
async def purchase_order(client, user_header):
    headers = await user_header("business")
    created_client = await client.post("/api/business/clients", json=CLIENT, headers=headers)
    assert created_client.status_code == 201
    entity = await client.post(
        "/api/business/business-entities",
        json={
            "name": "Data Centre AMC",
            "entity_type": "service",
            "service_type": "Maintenance",
            "client_id": created_client.json()["id"],
            "start_date": "2024-04-01",
            "end_date": "2025-03-31",
            "order_value": "100000",
            "payment_duration": "Quarterly",
        },
        headers=headers,
    )
    assert entity.status_code == 201
    po = await client.post(
        "/api/business/purchase-orders",
        json={
            "entity_id": entity.json()["id"],
            "invoice_no": "INV-1",
            "invoice_date": "2024-04-05",
            "invoice_value": "1000",
            "invoice_status": "Raised",
        },
        headers=headers,
    )
    assert po.status_code == 201
    return entity.json(), po.json(), headers


def _milestone(po_id: int, amount: str, status: str) -> dict:
    return {
        "po_id": po_id,
        "payment_date": "2024-06-30",
        "amount": amount,
        "status": status,
        "billing_start_date": "2024-04-01",
        "billing_end_date": "2024-06-30",
    }


async def test_client_missing_fields(client, auth_header):
    response = await client.post(
        "/api/business/clients", json={"client_name": "Half"}, headers=auth_header("business")
    )
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Missing required fields"
    assert "email" in body["details"]["missing"]


async def test_service_needs_service_type(client, auth_header):
    response = await client.post(
        "/api/business/business-entities",
        json={
            "name": "X",
            "entity_type": "service",
            "client_id": 1,
            "start_date": "2024-01-01",
            "end_date": "2024-12-31",
            "order_value": "10",
            "payment_duration": "Monthly",
        },
        headers=auth_header("business"),
    )
    assert response.status_code == 400


async def test_po_status_follows_received_payments(client, purchase_order):
    entity, po, headers = purchase_order
    assert po["status"] == "Payment Pending"
    assert po["client_name"] == "Acme Corp"
    milestones = f"/api/business/business-entities/{entity['id']}/payment-milestones"

    pending = await client.post(milestones, json=_milestone(po["po_id"], "400", "pending"), headers=headers)
    assert pending.status_code == 201
    orders = await client.get(f"/api/business/business-entities/{entity['id']}/purchase-orders", headers=headers)
    assert orders.json()[0]["status"] == "Payment Pending"

    received = await client.post(milestones, json=_milestone(po["po_id"], "400", "received"), headers=headers)
    assert received.status_code == 201
    orders = await client.get(f"/api/business/business-entities/{entity['id']}/purchase-orders", headers=headers)
    assert orders.json()[0]["status"] == "Partial Payment"

    # flip the pending milestone to received: 1000 of 1000
    await client.put(
        f"{milestones}/{pending.json()['id']}", json={"status": "received", "amount": "600"}, headers=headers
    )
    history = await client.get(f"/api/business/purchase-orders/{po['po_id']}/status-history", headers=headers)
    assert [h["new_status"] for h in history.json()][0] == "Paid Completely"
    assert history.json()[0]["reason"] == "Auto-updated based on payment milestones"
    assert history.json()[0]["changed_by"] == "business_tester"

    unchanged = await client.post(
        f"/api/business/purchase-orders/{po['po_id']}/auto-update-status", headers=headers
    )
    assert unchanged.json() == {
        "message": "Status unchanged",
        "old_status": None,
        "new_status": None,
        "current_status": "Paid Completely",
    }


async def test_milestone_must_belong_to_entity_po(client, purchase_order):
    entity, po, headers = purchase_order
    response = await client.post(
        f"/api/business/business-entities/{entity['id']}/payment-milestones",
        json=_milestone(999999, "10", "pending"),
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Purchase order not found or does not belong to this entity"


async def test_entity_with_milestones_cannot_be_deleted(client, purchase_order):
    entity, po, headers = purchase_order
    await client.post(
        f"/api/business/business-entities/{entity['id']}/payment-milestones",
        json=_milestone(po["po_id"], "10", "pending"),
        headers=headers,
    )
    response = await client.delete(f"/api/business/business-entities/{entity['id']}", headers=headers)
    assert response.status_code == 400
    assert "1 payment milestone(s)" in response.json()["detail"]


async def test_manual_status_change_is_recorded(client, purchase_order):
    _, po, headers = purchase_order
    response = await client.put(
        f"/api/business/purchase-orders/{po['po_id']}/status",
        json={"new_status": "On Hold", "reason": "Client dispute"},
        headers=headers,
    )
    assert response.json() == {"message": "Status updated successfully"}
    history = await client.get(f"/api/business/purchase-orders/{po['po_id']}/status-history", headers=headers)
    entry = history.json()[0]
    assert (entry["old_status"], entry["new_status"], entry["reason"]) == (
        "Payment Pending",
        "On Hold",
        "Client dispute",
    )
