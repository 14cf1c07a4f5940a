"""
ACTS courses, the ACTS dashboard and manpower counts.
"""
from __future__ import annotations

COURSE = {
    "course_name": "PG-DAI",
    "batch_name": "Feb 2024",
    "batch_id": "TST-FEB24",
    "year": 2024,
    "students_enrolled": 40,
    "students_placed": 30,
    "course_fee": "100000",
}


async def test_duplicate_course_batch(client, auth_header):
    headers = auth_header("acts")
    first = await client.post("/api/acts/courses", json=COURSE, headers=headers)
    assert first.status_code == 201

    second = await client.post("/api/acts/courses", json=COURSE, headers=headers)
    assert second.status_code == 409
    body = second.json()
    assert body["detail"] == (
        "A course with this combination of course name and batch ID already exists."
    )
    assert body["details"] == {"course_name": "PG-DAI", "batch_id": "TST-FEB24"}

    other_batch = await client.post(
        "/api/acts/courses", json={**COURSE, "batch_id": "TST-AUG24"}, headers=headers
    )
    assert other_batch.status_code == 201


async def test_placed_cannot_exceed_enrolled(client, auth_header):
    response = await client.post(
        "/api/acts/courses",
        json={**COURSE, "students_placed": 41},
        headers=auth_header("acts"),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Students placed cannot exceed students enrolled"


async def test_summary_counts_distinct_course_names(client, auth_header):
    headers = auth_header("acts")
    before = (await client.get("/api/acts/dashboard/summary", headers=headers)).json()

    await client.post("/api/acts/courses", json=COURSE, headers=headers)
    await client.post(
        "/api/acts/courses",
        json={**COURSE, "batch_id": "TST-AUG24", "students_enrolled": 10, "students_placed": 10},
        headers=headers,
    )
    after = (await client.get("/api/acts/dashboard/summary", headers=headers)).json()

    assert after["total_courses"] - before["total_courses"] in (0, 1)
    assert after["total_students_enrolled"] - before["total_students_enrolled"] == 50
    assert after["total_students_placed"] - before["total_students_placed"] == 40
    assert after["total_revenue"] - before["total_revenue"] == 5_000_000.0

    revenue = (await client.get("/api/acts/dashboard/revenue-by-course", headers=headers)).json()
    assert {"course_name": "PG-DAI (2024)", "total_revenue": 4_000_000.0} in revenue


async def test_manpower_latest_first(client, auth_header):
    headers = auth_header("admin")
    await client.post("/api/manpower", json={"on_rolls": 10}, headers=headers)
    latest = await client.post("/api/manpower", json={"on_rolls": 12, "pe": 3}, headers=headers)
    assert latest.status_code == 201

    rows = (await client.get("/api/manpower", headers=headers)).json()
    assert rows[0]["id"] == latest.json()["id"]
    assert rows[0]["pe"] == 3

    response = await client.post("/api/manpower", json={"on_rolls": -1}, headers=headers)
    assert response.status_code == 400
