from __future__ import annotations

from app.db import inserted_id
from app.infrastructure.repositories.base import CompanyScopedRepository


class StatusEventRepository(CompanyScopedRepository):
    def add_event(
        self,
        db,
        *,
        entity: str,
        entity_id: int,
        from_status: str | None,
        to_status: str | None,
        reason: str | None,
    ) -> int:
        cursor = db.execute(
            """
            INSERT INTO status_events (entity, entity_id, from_status, to_status, reason, company_id)
            VALUES (?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (entity, entity_id, from_status, to_status, reason, self.company_id),
        )
        return inserted_id(cursor)

    def list_for_entity(self, db, *, entity: str, entity_id: int, limit: int = 120) -> list[dict]:
        rows = db.execute(
            """
            SELECT id, entity, entity_id, from_status, to_status, reason, occurred_at, company_id
            FROM status_events
            WHERE entity = ? AND entity_id = ? AND company_id = ?
            ORDER BY occurred_at DESC, id DESC
            LIMIT ?
            """,
            (entity, entity_id, self.company_id, int(limit)),
        ).fetchall()
        return self.rows_to_dicts(rows)
