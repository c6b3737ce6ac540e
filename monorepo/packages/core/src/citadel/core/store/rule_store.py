"""RuleStore / PreflightLogStore SQLite 实现"""

from datetime import datetime

import aiosqlite

from ..models.rule import PreflightLog, Rule


class SqliteRuleStore:
    """RuleStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_rule(self, rule: Rule) -> None:
        await self._conn.execute(
            """
            INSERT INTO rules (rule_id, text, why, scope, tier, checkable,
                               check_pattern, active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            self._rule_params(rule),
        )

    async def save_rule(self, rule: Rule) -> None:
        await self._conn.execute(
            """
            UPDATE rules
            SET text = ?, why = ?, scope = ?, tier = ?, checkable = ?,
                check_pattern = ?, active = ?, updated_at = ?
            WHERE rule_id = ?
            """,
            (
                rule.text,
                rule.why,
                rule.scope.value,
                rule.tier.value,
                int(rule.checkable),
                rule.check_pattern,
                int(rule.active),
                rule.updated_at.isoformat(),
                rule.rule_id,
            ),
        )

    async def delete_rule(self, rule_id: str) -> bool:
        cursor = await self._conn.execute("DELETE FROM rules WHERE rule_id = ?", (rule_id,))
        return cursor.rowcount > 0

    async def get_rule(self, rule_id: str) -> Rule | None:
        cursor = await self._conn.execute("SELECT * FROM rules WHERE rule_id = ?", (rule_id,))
        row = await cursor.fetchone()
        return self._row_to_rule(row) if row else None

    async def list_rules(
        self,
        scope: str | None = None,
        tier: str | None = None,
        active: bool | None = None,
    ) -> list[Rule]:
        clauses: list[str] = []
        params: list = []
        if scope:
            clauses.append("scope = ?")
            params.append(scope)
        if tier:
            clauses.append("tier = ?")
            params.append(tier)
        if active is not None:
            clauses.append("active = ?")
            params.append(int(active))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM rules {where} ORDER BY created_at, rowid",
            tuple(params),
        )
        rows = await cursor.fetchall()
        return [self._row_to_rule(row) for row in rows]

    async def list_active_for_scopes(self, scopes: list[str]) -> list[Rule]:
        """启用中且作用域属于 scopes 的规则"""
        placeholders = ", ".join("?" for _ in scopes)
        cursor = await self._conn.execute(
            f"""
            SELECT * FROM rules
            WHERE active = 1 AND scope IN ({placeholders})
            ORDER BY created_at, rowid
            """,
            tuple(scopes),
        )
        rows = await cursor.fetchall()
        return [self._row_to_rule(row) for row in rows]

    @staticmethod
    def _rule_params(rule: Rule) -> tuple:
        return (
            rule.rule_id,
            rule.text,
            rule.why,
            rule.scope.value,
            rule.tier.value,
            int(rule.checkable),
            rule.check_pattern,
            int(rule.active),
            rule.created_at.isoformat(),
            rule.updated_at.isoformat(),
        )

    @staticmethod
    def _row_to_rule(row: aiosqlite.Row) -> Rule:
        return Rule(
            rule_id=row[0],
            text=row[1],
            why=row[2],
            scope=row[3],
            tier=row[4],
            checkable=bool(row[5]),
            check_pattern=row[6],
            active=bool(row[7]),
            created_at=datetime.fromisoformat(row[8]),
            updated_at=datetime.fromisoformat(row[9]),
        )


class SqlitePreflightLogStore:
    """PreflightLogStore 的 SQLite 实现（append-only）"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_log(self, entry: PreflightLog) -> None:
        await self._conn.execute(
            """
            INSERT INTO preflight_logs (log_id, agent_id, task_id, check_type,
                                        passed, details, content, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.log_id,
                entry.agent_id,
                entry.task_id,
                entry.check_type,
                int(entry.passed),
                entry.details,
                entry.content,
                entry.created_at.isoformat(),
            ),
        )

    async def list_recent(
        self,
        limit: int,
        agent_id: str | None = None,
        passed: bool | None = None,
    ) -> list[PreflightLog]:
        """最近的检查日志，最新优先"""
        clauses: list[str] = []
        params: list = []
        if agent_id:
            clauses.append("agent_id = ?")
            params.append(agent_id)
        if passed is not None:
            clauses.append("passed = ?")
            params.append(int(passed))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = await self._conn.execute(
            f"SELECT * FROM preflight_logs {where} ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (*params, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_log(row) for row in rows]

    @staticmethod
    def _row_to_log(row: aiosqlite.Row) -> PreflightLog:
        return PreflightLog(
            log_id=row[0],
            agent_id=row[1],
            task_id=row[2],
            check_type=row[3],
            passed=bool(row[4]),
            details=row[5],
            content=row[6],
            created_at=datetime.fromisoformat(row[7]),
        )
