"""Video management endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import auth_headers, make_assignment, make_user, make_video


@pytest.mark.asyncio
class TestVideoCrud:
    async def test_create_sets_owner(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, "Ada Admin", role="admin")

        response = await client.post(
            "/api/v1/videos",
            json={"title": "Coupling a trailer", "category": "Equipment", "is_annual_renewal": True},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Coupling a trailer"
        assert data["admin_user"] == admin.id
        assert data["is_annual_renewal"] is True
        assert data["num_of_assigned_users"] == 0
        assert data["completion_rate"] == 0

    async def test_create_requires_title(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, role="admin")
        response = await client.post("/api/v1/videos", json={"title": ""}, headers=auth_headers(admin))
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    async def test_list_newest_first_with_stats(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, role="admin")
        driver = await make_user(db_session, "Dee")
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        older = await make_video(db_session, "Older", created_at=base)
        newer = await make_video(db_session, "Newer", created_at=base + timedelta(days=1))
        await make_assignment(db_session, driver, older, is_completed=True)

        response = await client.get("/api/v1/videos", headers=auth_headers(admin))

        assert response.status_code == 200
        data = response.json()["data"]
        assert [v["id"] for v in data] == [newer.id, older.id]
        assert data[1]["num_of_assigned_users"] == 1
        assert data[1]["completion_rate"] == 100

    async def test_get_missing_video(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, role="admin")
        response = await client.get("/api/v1/videos/nope", headers=auth_headers(admin))
        assert response.status_code == 404
        assert response.json() == {"detail": "Video not found"}

    async def test_update_video(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, role="admin")
        video = await make_video(db_session, "Old title", admin=admin)

        response = await client.put(
            f"/api/v1/videos/{video.id}",
            json={"title": "New title", "duration": "12:30"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "New title"
        assert response.json()["data"]["duration"] == "12:30"

    async def test_delete_video_removes_assignments(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, role="admin")
        driver = await make_user(db_session, "Dee")
        video = await make_video(db_session)
        await make_assignment(db_session, driver, video)

        response = await client.delete(f"/api/v1/videos/{video.id}", headers=auth_headers(admin))
        assert response.status_code == 200

        stats = await client.get(f"/api/v1/users/{driver.id}/stats", headers=auth_headers(admin))
        assert stats.json()["num_assigned"] == 0
        missing = await client.delete(f"/api/v1/videos/{video.id}", headers=auth_headers(admin))
        assert missing.status_code == 404

    async def test_driver_cannot_manage_videos(self, client: AsyncClient, db_session: AsyncSession) -> None:
        driver = await make_user(db_session)
        response = await client.get("/api/v1/videos", headers=auth_headers(driver))
        assert response.status_code == 403
        assert response.json() == {"detail": "Unauthorized"}


@pytest.mark.asyncio
class TestVideoAssignments:
    async def test_reconcile_users(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, "Admin", role="admin")
        a, b, c, d = [await make_user(db_session, name) for name in ("A", "B", "C", "D")]
        video = await make_video(db_session, admin=admin)
        await make_assignment(db_session, a, video)
        await make_assignment(db_session, b, video, is_completed=True)
        await make_assignment(db_session, c, video)

        response = await client.put(
            f"/api/v1/videos/{video.id}/assignments",
            json={"user_ids": [b.id, c.id, d.id]},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["added"] == [d.id]
        assert body["removed"] == [a.id]
        assert {e["user_id"] for e in body["data"]} == {b.id, c.id, d.id}

        stats = await client.get(f"/api/v1/videos/{video.id}/stats", headers=auth_headers(admin))
        assert stats.json()["assigned_count"] == 3
        assert stats.json()["completion_rate"] == 33

    async def test_repeat_reconcile_reports_no_changes(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, "Admin", role="admin")
        driver = await make_user(db_session, "Dee")
        video = await make_video(db_session, admin=admin)
        url = f"/api/v1/videos/{video.id}/assignments"

        first = await client.put(url, json={"user_ids": [driver.id]}, headers=auth_headers(admin))
        second = await client.put(url, json={"user_ids": [driver.id]}, headers=auth_headers(admin))

        assert first.json()["added"] == [driver.id]
        assert second.json()["added"] == []
        assert second.json()["removed"] == []
        assert second.json()["data"][0]["id"] == first.json()["data"][0]["id"]

    async def test_only_owner_may_assign(self, client: AsyncClient, db_session: AsyncSession) -> None:
        owner = await make_user(db_session, "Owner", role="admin")
        other = await make_user(db_session, "Other", role="admin")
        video = await make_video(db_session, admin=owner)

        response = await client.put(
            f"/api/v1/videos/{video.id}/assignments", json={"user_ids": []}, headers=auth_headers(other)
        )

        assert response.status_code == 404
        assert response.json() == {"detail": "Video not found or access denied"}

    async def test_unknown_user_fails_in_add_phase(self, client: AsyncClient, db_session: AsyncSession) -> None:
        admin = await make_user(db_session, "Admin", role="admin")
        driver = await make_user(db_session, "Dee")
        video = await make_video(db_session, admin=admin)
        await make_assignment(db_session, driver, video)

        response = await client.put(
            f"/api/v1/videos/{video.id}/assignments",
            json={"user_ids": ["ghost"]},
            headers=auth_headers(admin),
        )

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to add video assignments", "phase": "add"}
        # the removal of the existing driver was rolled back with the request
        stats = await client.get(f"/api/v1/videos/{video.id}/stats", headers=auth_headers(admin))
        assert stats.json()["assigned_count"] == 1
