"""评论 fan-out 集成测试

测试内容：
1. mention 通知与 comment 通知的接收者划分（每人最多一条）
2. 作者自身不收通知，未登记的 @name 被忽略
3. 任务或作者不存在时不写入任何记录
4. preflight 只报告不阻断
"""

from citadel.core.models import AgentRole, NotificationType
from citadel.core.store import StoreGroup
from httpx import AsyncClient


async def _create_task(client: AsyncClient, **body) -> str:
    resp = await client.post("/api/task", json={"title": "Launch", **body})
    return resp.json()["task_id"]


async def _comment(client: AsyncClient, agent: str, task_id: str, content: str):
    return await client.post(
        "/api/comment",
        json={"agentName": agent, "taskId": task_id, "content": content},
    )


class TestFanout:
    """POST /api/comment -- 通知 fan-out"""

    async def test_mentions_and_subscribers(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        """A 评论 @B @C，D 为既有订阅者：B/C 收 mention，D 收 comment，A 不收"""
        a = await make_agent("Alpha")
        b = await make_agent("Bravo")
        c = await make_agent("Charlie")
        d = await make_agent("Delta")
        task_id = await _create_task(client, creatorName="Delta")

        resp = await _comment(client, "Alpha", task_id, "@Bravo @charlie please review")
        assert resp.status_code == 201
        data = resp.json()
        assert data["ok"] is True
        assert data["notifications"] == 3
        assert data["preflight"] == []

        pending = await store_group.notification_store.list_undelivered(50)
        by_agent = {n.agent_id: n for n in pending}
        assert set(by_agent) == {b.agent_id, c.agent_id, d.agent_id}
        assert by_agent[b.agent_id].type == NotificationType.MENTION
        assert by_agent[c.agent_id].type == NotificationType.MENTION
        assert by_agent[d.agent_id].type == NotificationType.COMMENT
        assert by_agent[b.agent_id].message == "Alpha mentioned you in: Launch"
        assert by_agent[d.agent_id].message == "Alpha commented on: Launch"
        assert a.agent_id not in by_agent

        # mention 通知先于 comment 通知
        assert [n.type for n in pending] == [
            NotificationType.MENTION,
            NotificationType.MENTION,
            NotificationType.COMMENT,
        ]

        # 作者与被提及者都已订阅
        subs = await store_group.subscription_store.list_by_task(task_id)
        assert {s.agent_id for s in subs} == {a.agent_id, b.agent_id, c.agent_id, d.agent_id}

    async def test_subscriber_mentioned_gets_single_notification(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        await make_agent("Alpha")
        bravo = await make_agent("Bravo")
        task_id = await _create_task(client, creatorName="Bravo")

        await _comment(client, "Alpha", task_id, "ping @Bravo and @BRAVO")

        pending = await store_group.notification_store.list_undelivered(50)
        assert [(n.agent_id, n.type) for n in pending] == [
            (bravo.agent_id, NotificationType.MENTION)
        ]

    async def test_self_mention_and_unknown_names_ignored(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        await make_agent("Alpha")
        task_id = await _create_task(client)

        resp = await _comment(client, "Alpha", task_id, "note to @Alpha and @Nobody")
        assert resp.json()["notifications"] == 0
        assert await store_group.notification_store.list_undelivered(50) == []

    async def test_repeat_comment_notifies_subscribers_again(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        await make_agent("Alpha")
        bravo = await make_agent("Bravo")
        task_id = await _create_task(client)

        await _comment(client, "Alpha", task_id, "hey @Bravo")
        await _comment(client, "Alpha", task_id, "any update?")

        pending = await store_group.notification_store.list_undelivered(50)
        assert [(n.agent_id, n.type) for n in pending] == [
            (bravo.agent_id, NotificationType.MENTION),
            (bravo.agent_id, NotificationType.COMMENT),
        ]

    async def test_comment_activity_recorded(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        alpha = await make_agent("Alpha")
        task_id = await _create_task(client)
        await _comment(client, "Alpha", task_id, "done")

        activities = await store_group.activity_store.list_recent(50, target_type="comment")
        assert len(activities) == 1
        assert activities[0].agent_id == alpha.agent_id
        assert activities[0].target_id == task_id


class TestCommentErrors:
    """引用不存在的实体"""

    async def test_unknown_task_writes_nothing(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        await make_agent("Alpha")
        await make_agent("Bravo")
        resp = await _comment(client, "Alpha", "01JMISSING0000000000000000", "@Bravo hi")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "TASK_NOT_FOUND"
        assert await store_group.notification_store.list_undelivered(50) == []
        assert await store_group.preflight_log_store.list_recent(50) == []

    async def test_unknown_agent(self, client: AsyncClient):
        task_id = await _create_task(client)
        resp = await _comment(client, "Ghost", task_id, "boo")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "AGENT_NOT_FOUND"

    async def test_missing_agent_name(self, client: AsyncClient):
        task_id = await _create_task(client)
        resp = await client.post("/api/comment", json={"taskId": task_id, "content": "x"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "MISSING_AGENT_NAME"

    async def test_agent_alias_fields(self, client: AsyncClient, make_agent):
        """agentName / name / agent 三种字段名均可"""
        await make_agent("Alpha")
        task_id = await _create_task(client)
        for field in ("agentName", "name", "agent"):
            resp = await client.post(
                "/api/comment",
                json={field: "Alpha", "task_id": task_id, "content": "x"},
            )
            assert resp.status_code == 201


class TestCommentPreflight:
    """评论前的 preflight 检查"""

    async def test_required_pattern_reported_not_blocking(
        self, client: AsyncClient, store_group: StoreGroup, make_agent
    ):
        alpha = await make_agent("Alpha", AgentRole.BUILDER)
        resp = await client.post(
            "/api/rules",
            json={
                "text": "Always sign off",
                "tier": "critical",
                "checkable": True,
                "checkPattern": "absence of signed-off",
            },
        )
        rule_id = resp.json()["rule"]["rule_id"]
        task_id = await _create_task(client)

        resp = await _comment(client, "Alpha", task_id, "shipped it")
        assert resp.status_code == 201
        assert resp.json()["preflight"] == [
            {
                "rule_id": rule_id,
                "rule_text": "Always sign off",
                "tier": "critical",
                "passed": False,
                "details": "Required pattern not found: signed-off",
            }
        ]
        # 评论照常写入
        assert len(await store_group.message_store.list_for_task(task_id)) == 1

        resp = await _comment(client, "Alpha", task_id, "shipped. Signed-Off by Alpha")
        assert resp.json()["preflight"][0]["passed"] is True

        failures = await store_group.preflight_log_store.list_recent(
            50, agent_id=alpha.agent_id, passed=False
        )
        assert len(failures) == 1
        assert failures[0].check_type == f"rule:{rule_id}"
