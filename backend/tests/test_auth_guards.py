"""
Bearer token and role checks. None of these requests reach the database.
"""
from __future__ import annotations

import pytest


class TestBearerToken:
    async def test_missing_token_is_401(self, offline_client):
        response = await offline_client.get("/api/acts/courses")
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "unauthorized"
        assert body["error"] == body["detail"]

    async def test_garbage_token_is_403(self, offline_client):
        response = await offline_client.get(
            "/api/acts/courses", headers={"Authorization": "Bearer not.a.token"}
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_health_is_public(self, offline_client):
        response = await offline_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestRoleGates:
    @pytest.mark.parametrize(
        "path",
        ["/api/travels", "/api/talks", "/api/calendar-events"],
    )
    async def test_ed_office_rejects_other_roles(self, offline_client, auth_header, path):
        response = await offline_client.get(path, headers=auth_header("finance"))
        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    async def test_talks_reject_ed(self, offline_client, auth_header):
        response = await offline_client.get("/api/talks", headers=auth_header("ed"))
        assert response.status_code == 403

    async def test_patents_need_tg_role(self, offline_client, auth_header):
        response = await offline_client.get("/api/patents", headers=auth_header("admin"))
        assert response.status_code == 403

    async def test_role_check_is_case_insensitive(self, offline_client, auth_header):
        # passes the gate, then fails body validation before any query
        response = await offline_client.patch(
            "/api/travels/1/status", json={"status": "bogus"}, headers=auth_header("EdOfc")
        )
        assert response.status_code == 400


class TestTravelStatusValidation:
    async def test_deputing_requires_remarks(self, offline_client, auth_header):
        response = await offline_client.patch(
            "/api/travels/1/status",
            json={"status": "deputing"},
            headers=auth_header("edofc"),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Remarks are required when status is deputing"

    async def test_blank_deputing_remarks_rejected(self, offline_client, auth_header):
        response = await offline_client.patch(
            "/api/travels/1/status",
            json={"status": "deputing", "deputing_remarks": "   "},
            headers=auth_header("ed"),
        )
        assert response.status_code == 400

    async def test_return_before_onward_rejected(self, offline_client, auth_header):
        response = await offline_client.post(
            "/api/travels",
            json={
                "travel_type": "domestic",
                "location": "Pune",
                "onward_date": "2024-05-10",
                "return_date": "2024-05-01",
                "purpose": "Conference",
            },
            headers=auth_header("ed"),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid travel type or dates"

    async def test_create_deputing_requires_remarks(self, offline_client, auth_header):
        response = await offline_client.post(
            "/api/travels",
            json={
                "travel_type": "foreign",
                "location": "Berlin",
                "onward_date": "2024-05-01",
                "return_date": "2024-05-10",
                "purpose": "Standards meeting",
                "status": "deputing",
            },
            headers=auth_header("edofc"),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Remarks are required when status is deputing"
