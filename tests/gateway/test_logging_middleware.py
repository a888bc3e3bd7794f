"""LoggingMiddleware 测试 -- 请求上下文中的操作者标识"""

import pytest
import structlog
from httpx import AsyncClient


@pytest.fixture
def bound(monkeypatch) -> list[dict]:
    calls: list[dict] = []
    real_bind = structlog.contextvars.bind_contextvars

    def record(**kw):
        calls.append(kw)
        return real_bind(**kw)

    monkeypatch.setattr(structlog.contextvars, "bind_contextvars", record)
    return calls


class TestActorBinding:
    @pytest.mark.parametrize(
        "headers,expected",
        [
            ({"X-Actor-Id": ""}, "system"),
            ({"X-Actor-Id": "   "}, "system"),
            ({"X-Actor-Id": " admin-7 "}, "admin-7"),
        ],
    )
    async def test_actor_matches_route_dependency(
        self, client: AsyncClient, bound, headers, expected
    ):
        resp = await client.get("/health", headers=headers)
        assert resp.status_code == 200
        actors = [kw["actor_id"] for kw in bound if "actor_id" in kw]
        assert actors == [expected]

    async def test_missing_header(self, client: AsyncClient, bound):
        del client.headers["X-Actor-Id"]
        await client.get("/health")
        assert [kw["actor_id"] for kw in bound if "actor_id" in kw] == ["system"]

    async def test_blank_header_recorded_as_system_in_activity(self, client: AsyncClient):
        resp = await client.post(
            "/tasks", json={"title": "CASE-1"}, headers={"X-Actor-Id": "  "}
        )
        task_id = resp.json()["task"]["taskId"]
        detail = await client.get(f"/tasks/{task_id}")
        assert detail.json()["activity"][0]["actorId"] == "system"
