"""
MMG procurement workflow from indent to paid purchase order.
"""
from __future__ import annotations

import pytest

INDENT = {
    "indent_number": "IND/ZZ/001",
    "title": "GPU workstation",
    "purchase_type": "Equipment",
    "estimated_cost": "450000",
    "indent_date": "2024-05-02",
    "items": [{"item_name": "Workstation", "quantity": 2}],
}


@pytest.fixture
async def procurement(client, user_header):
    headers = await user_header("mmg")
    response = await client.post("/api/mmg/procurements", json=INDENT, headers=headers)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Procurement created successfully"
    return body["procurementId"], headers


async def test_duplicate_indent_number(client, procurement):
    _, headers = procurement
    response = await client.post("/api/mmg/procurements", json=INDENT, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Indent number already exists"


async def test_indent_needs_items(client, auth_header):
    response = await client.post(
        "/api/mmg/procurements", json={**INDENT, "items": []}, headers=auth_header("mmg")
    )
    assert response.status_code == 400


async def test_full_workflow(client, procurement):
    procurement_id, headers = procurement
    base = f"/api/mmg/procurements/{procurement_id}"

    detail = (await client.post(
        f"{base}/approve", json={"role": "ED", "status": "Approved"}, headers=headers
    )).json()
    assert detail["status"] == "Approved by ED"

    # bids are only taken once a tender is out
    response = await client.post(f"{base}/bids", json={"vendor_name": "A", "bid_amount": "1"}, headers=headers)
    assert response.status_code == 400

    response = await client.post(f"{base}/sourcing", json={"sourcing_method": "TENDER"}, headers=headers)
    assert response.status_code == 201
    await client.post(f"{base}/status", json={"status": "Tender Called"}, headers=headers)

    low = (await client.post(
        f"{base}/bids", json={"vendor_name": "Low Bidder", "bid_amount": "400000"}, headers=headers
    )).json()
    await client.post(f"{base}/bids", json={"vendor_name": "Late Bidder", "bid_amount": "420000"}, headers=headers)
    detail = (await client.get(base, headers=headers)).json()
    assert detail["status"] == "Bids Received"
    assert detail["sourcing_method"] == "TENDER"
    assert len(detail["bids"]) == 2

    response = await client.post(
        f"{base}/finalize-vendor", json={"bid_id": low["id"], "finalization_date": "2024-06-01"}, headers=headers
    )
    assert response.status_code == 200

    po = await client.post(
        f"{base}/purchase-order",
        json={
            "po_number": "PO/ZZ/9",
            "po_date": "2024-06-05",
            "po_value": "400000",
            "po_creation_date": "2024-06-05",
        },
        headers=headers,
    )
    assert po.status_code == 201
    po = po.json()
    assert po["vendor_name"] == "Low Bidder"
    assert po["status"] == "Pending"

    response = await client.put(
        f"/api/mmg/procurements/purchase-order/{po['po_id']}/status",
        json={"status": "Payment Processed", "status_update_date": "2024-07-01"},
        headers=headers,
    )
    assert response.status_code == 400

    response = await client.put(
        f"/api/mmg/procurements/purchase-order/{po['po_id']}/status",
        json={
            "status": "Payment Processed",
            "status_update_date": "2024-07-01",
            "payment_completion_date": "2024-07-01",
        },
        headers=headers,
    )
    assert response.json() == {"message": "PO status updated successfully"}

    rows = (await client.get("/api/mmg/combined-data", headers=headers)).json()
    row = next(r for r in rows if r["id"] == procurement_id)
    assert row["bid_count"] == 2
    assert row["payment_status"] == "Payment Processed"

    detail = (await client.get(base, headers=headers)).json()
    assert detail["status"] == "PO Created"
    statuses = {h["new_status"] for h in detail["history"]}
    assert {"Indent Received", "Approved by ED", "Sourcing Method Selected", "Vendor Finalized"} <= statuses

    response = await client.delete(base, headers=headers)
    assert response.status_code == 400


async def test_pending_indent_can_be_deleted(client, procurement):
    procurement_id, headers = procurement
    response = await client.delete(f"/api/mmg/procurements/{procurement_id}", headers=headers)
    assert response.status_code == 200
    response = await client.get(f"/api/mmg/procurements/{procurement_id}", headers=headers)
    assert response.status_code == 404


async def test_combined_view_shows_latest_purchase_order(client, procurement):
    procurement_id, headers = procurement
    base = f"/api/mmg/procurements/{procurement_id}"
    await client.post(f"{base}/status", json={"status": "Tender Called"}, headers=headers)
    bid = (await client.post(
        f"{base}/bids", json={"vendor_name": "Only Bidder", "bid_amount": "300000"}, headers=headers
    )).json()
    await client.post(
        f"{base}/finalize-vendor", json={"bid_id": bid["id"], "finalization_date": "2024-06-01"}, headers=headers
    )
    for number in ("PO/ZZ/10", "PO/ZZ/11"):
        response = await client.post(
            f"{base}/purchase-order",
            json={
                "po_number": number,
                "po_date": "2024-06-05",
                "po_value": "300000",
                "po_creation_date": "2024-06-05",
            },
            headers=headers,
        )
        assert response.status_code == 201
        # reopen so a replacement PO can be raised
        await client.post(f"{base}/status", json={"status": "Accepted by MMG"}, headers=headers)

    rows = (await client.get("/api/mmg/combined-data", headers=headers)).json()
    mine = [r for r in rows if r["id"] == procurement_id]
    assert len(mine) == 1
    assert mine[0]["po_number"] == "PO/ZZ/11"
