"""
ED office: travels, talks and the calendar.
"""
from __future__ import annotations

TRAVEL = {
    "travel_type": "foreign",
    "location": "Singapore",
    "onward_date": "2024-08-01",
    "return_date": "2024-08-05",
    "purpose": "Supercomputing summit",
}


async def test_travel_status_flow(client, auth_header):
    headers = auth_header("edofc")
    created = await client.post("/api/travels", json=TRAVEL, headers=headers)
    assert created.status_code == 201
    travel = created.json()
    assert travel["status"] == "going"

    response = await client.patch(
        f"/api/travels/{travel['id']}/status",
        json={"status": "deputing", "deputing_remarks": "Dr. Iyer will attend"},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "deputing"
    assert body["remarks"] == "Dr. Iyer will attend"
    assert body["deputing_remarks"] == "Dr. Iyer will attend"

    # leaving deputing clears the remarks
    response = await client.patch(
        f"/api/travels/{travel['id']}/status", json={"status": "not_going"}, headers=headers
    )
    assert response.json()["remarks"] is None



async def test_travel_created_as_deputing(client, auth_header):
    headers = auth_header("ed")
    created = await client.post(
        "/api/travels",
        json={**TRAVEL, "status": "deputing", "deputing_remarks": "Group head travels instead"},
        headers=headers,
    )
    assert created.status_code == 201
    travel = created.json()
    assert travel["status"] == "deputing"
    assert travel["remarks"] == "Group head travels instead"

    # dropping the remarks of a deputed travel is rejected
    response = await client.put(
        f"/api/travels/{travel['id']}", json={"remarks": ""}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Remarks are required when status is deputing"


async def test_travel_update_and_delete(client, auth_header):
    headers = auth_header("ed")
    travel = (await client.post("/api/travels", json=TRAVEL, headers=headers)).json()

    response = await client.put(f"/api/travels/{travel['id']}", json={}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No fields to update"

    response = await client.put(
        f"/api/travels/{travel['id']}", json={"return_date": "2024-07-01"}, headers=headers
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid travel type or dates"

    response = await client.put(
        f"/api/travels/{travel['id']}", json={"location": "Tokyo"}, headers=headers
    )
    assert response.json()["location"] == "Tokyo"

    response = await client.delete(f"/api/travels/{travel['id']}", headers=headers)
    assert response.json() == {"message": "Travel deleted successfully"}
    response = await client.get(f"/api/travels/{travel['id']}", headers=headers)
    assert response.status_code == 404


async def test_talks_require_all_fields(client, auth_header):
    headers = auth_header("edofc")
    response = await client.post("/api/talks", json={"speaker_name": "ED"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "All fields are required"

    talk = {
        "speaker_name": "ED",
        "topic_role": "Keynote",
        "event_name": "AI Summit",
        "venue": "Bengaluru",
        "talk_date": "2024-09-10",
    }
    created = await client.post("/api/talks", json=talk, headers=headers)
    assert created.status_code == 201
    response = await client.delete(f"/api/talks/{created.json()['id']}", headers=headers)
    assert response.status_code == 204


async def test_calendar_event_period(client, auth_header):
    headers = auth_header("ed")
    response = await client.post("/api/calendar-events", json={"title": "Review"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing required fields"

    event = {
        "title": "Board review",
        "start_time": "2024-09-10T10:00:00",
        "end_time": "2024-09-10T11:00:00",
    }
    created = await client.post("/api/calendar-events", json=event, headers=headers)
    assert created.status_code == 201
    response = await client.delete(f"/api/calendar-events/{created.json()['id']}", headers=headers)
    assert response.json() == {"success": True}
