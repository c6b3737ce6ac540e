"""规则、preflight、文档与活动路由测试"""

from citadel.core.models import AgentRole
from citadel.core.store import StoreGroup
from httpx import AsyncClient


async def _rule(client: AsyncClient, **body) -> dict:
    resp = await client.post("/api/rules", json={"checkable": True, **body})
    assert resp.status_code == 201
    return resp.json()["rule"]


class TestRules:
    """/api/rules*"""

    async def test_crud(self, client: AsyncClient):
        rule = await _rule(client, text="No promises", checkPattern="guarantee")
        assert rule["scope"] == "global"
        assert rule["tier"] == "standard"
        assert rule["active"] is True

        resp = await client.patch(
            f"/api/rules/{rule['rule_id']}",
            json={"tier": "critical", "active": False},
        )
        updated = resp.json()["rule"]
        assert updated["tier"] == "critical"
        assert updated["active"] is False
        # 未提供的字段保持原值
        assert updated["check_pattern"] == "guarantee"

        resp = await client.get("/api/rules", params={"active": "false"})
        assert [r["rule_id"] for r in resp.json()["rules"]] == [rule["rule_id"]]

        resp = await client.delete(f"/api/rules/{rule['rule_id']}")
        assert resp.json() == {"ok": True}
        resp = await client.delete(f"/api/rules/{rule['rule_id']}")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "RULE_NOT_FOUND"

    async def test_rules_for_agent_by_scope(self, client: AsyncClient, make_agent):
        await make_agent("Katy", AgentRole.GROWTH)
        await _rule(client, text="global rule")
        await _rule(client, text="social rule", scope="social")
        await _rule(client, text="trading rule", scope="trading")

        resp = await client.get("/api/rules/for-agent", params={"agent": "Katy"})
        data = resp.json()
        assert data["scope"] == "social"
        assert [r["text"] for r in data["rules"]] == ["global rule", "social rule"]


class TestPreflight:
    """/api/preflight*"""

    async def test_scope_filtering(self, client: AsyncClient, make_agent):
        """trading 作用域规则不检查 growth agent"""
        await make_agent("Katy", AgentRole.GROWTH)
        await _rule(client, text="no hype", checkPattern="to the moon", scope="social")
        await _rule(client, text="no leverage", checkPattern="leverage", scope="trading")
        await _rule(client, text="not checkable", checkable=False, checkPattern="anything")

        resp = await client.post(
            "/api/preflight",
            json={"agentName": "Katy", "content": "Use leverage, we go to the MOON"},
        )
        data = resp.json()
        assert data["passed"] is False
        assert [r["rule_text"] for r in data["results"]] == ["no hype"]
        assert data["results"][0]["details"] == "Violation found: to the moon"

    async def test_logs_and_failures(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        await make_agent("Elon")
        await _rule(client, text="no secrets", checkPattern=r"api[_-]?key")

        await client.post("/api/preflight", json={"agentName": "Elon", "content": "clean"})
        long_content = "API_KEY=" + "x" * 1000
        await client.post("/api/preflight", json={"agentName": "Elon", "content": long_content})

        resp = await client.get("/api/preflight/logs", params={"agent": "Elon"})
        logs = resp.json()["logs"]
        assert len(logs) == 2

        resp = await client.get("/api/preflight/failures", params={"agent": "Elon"})
        failures = resp.json()["logs"]
        assert len(failures) == 1
        assert failures[0]["passed"] is False
        # 日志中的内容片段被截断
        assert len(failures[0]["content"]) == 500

    async def test_no_rules_passes(self, client: AsyncClient, make_agent):
        await make_agent("Elon")
        resp = await client.post("/api/preflight", json={"agentName": "Elon", "content": "x"})
        assert resp.json() == {"passed": True, "results": []}


class TestDocumentsAndActivity:
    """/api/document(s), /api/activity"""

    async def test_document_round_trip(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        await make_agent("Elon")
        resp = await client.post("/api/task", json={"title": "t"})
        task_id = resp.json()["task_id"]

        resp = await client.post(
            "/api/document",
            json={
                "agentName": "Elon",
                "taskId": task_id,
                "title": "Findings",
                "content": "# Research\n...",
                "type": "research",
            },
        )
        assert resp.status_code == 201
        document_id = resp.json()["document_id"]

        resp = await client.get("/api/documents", params={"taskId": task_id})
        documents = resp.json()["documents"]
        assert [d["document_id"] for d in documents] == [document_id]
        assert documents[0]["type"] == "research"

        resp = await client.get("/api/documents", params={"agent": "elon"})
        assert len(resp.json()["documents"]) == 1

        activities = await store_group.activity_store.list_recent(50, target_type="doc")
        assert activities[0].target_id == document_id

    async def test_document_unknown_agent(self, client: AsyncClient):
        resp = await client.post(
            "/api/document", json={"agentName": "Ghost", "title": "t", "content": "c"}
        )
        assert resp.status_code == 404

    async def test_activity_log_and_filter(self, client: AsyncClient, make_agent):
        await make_agent("Elon")
        resp = await client.post(
            "/api/activity",
            json={
                "agentName": "Elon",
                "action": "deploy",
                "targetType": "service",
                "targetId": "web",
                "description": "deployed web",
            },
        )
        assert resp.status_code == 201

        resp = await client.get("/api/activity", params={"targetType": "service"})
        activities = resp.json()["activities"]
        assert len(activities) == 1
        assert activities[0]["action"] == "deploy"
