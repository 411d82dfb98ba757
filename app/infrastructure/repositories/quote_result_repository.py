from __future__ import annotations

import json

from app.db import inserted_id
from app.domain.contracts import RateRowPick
from app.infrastructure.repositories.base import CompanyScopedRepository


def _decode_meta(row: dict) -> dict:
    raw = row.get("meta")
    if isinstance(raw, str) and raw:
        try:
            row["meta"] = json.loads(raw)
        except ValueError:
            row["meta"] = {}
    elif raw is None:
        row["meta"] = {}
    return row


class QuoteResultRepository(CompanyScopedRepository):
    """Offers of the company's quotes, one per carrier."""

    def add_table_result(self, db, *, quote_id: int, carrier_id: int, pick: RateRowPick) -> int:
        cursor = db.execute(
            """
            INSERT INTO quote_results (quote_id, carrier_id, origin_source, price_cents, deadline_days, status, meta)
            VALUES (?, ?, 'TABELA', ?, ?, 'SENT', ?)
            RETURNING id
            """,
            (
                quote_id,
                carrier_id,
                pick.preco_cents,
                pick.prazo_dias,
                json.dumps({"rate_row_id": pick.rate_row_id}),
            ),
        )
        return inserted_id(cursor)

    def list_for_quote(self, db, quote_id: int) -> list[dict]:
        rows = db.execute(
            """
            SELECT r.id, r.quote_id, r.carrier_id, r.origin_source, r.price_cents, r.deadline_days,
                   r.status, r.meta, r.created_at, c.name AS carrier_name
            FROM quote_results r
            JOIN quotes q ON q.id = r.quote_id
            LEFT JOIN carriers c ON c.id = r.carrier_id
            WHERE r.quote_id = ? AND q.company_id = ?
            ORDER BY r.price_cents ASC, r.deadline_days ASC, r.carrier_id ASC
            """,
            self.scoped_params((quote_id,)),
        ).fetchall()
        return [_decode_meta(row) for row in self.rows_to_dicts(rows)]

    def get_for_quote(self, db, quote_id: int, result_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT r.*
            FROM quote_results r
            JOIN quotes q ON q.id = r.quote_id
            WHERE r.id = ? AND r.quote_id = ? AND q.company_id = ?
            LIMIT 1
            """,
            self.scoped_params((result_id, quote_id)),
        ).fetchone()
        found = self.row_to_dict(row)
        return _decode_meta(found) if found else None

    def set_status(self, db, result_id: int, status: str) -> None:
        db.execute(
            """
            UPDATE quote_results
            SET status = ?
            WHERE id = ?
              AND quote_id IN (SELECT id FROM quotes WHERE company_id = ?)
            """,
            self.scoped_params((status, result_id)),
        )

    def lose_pending_results(self, db, quote_id: int, *, exclude_id: int | None = None) -> list[int]:
        pending = [
            int(row["id"])
            for row in db.execute(
                """
                SELECT r.id
                FROM quote_results r
                JOIN quotes q ON q.id = r.quote_id
                WHERE r.quote_id = ? AND r.status = 'SENT' AND q.company_id = ?
                """,
                self.scoped_params((quote_id,)),
            ).fetchall()
        ]
        pending = [result_id for result_id in pending if result_id != exclude_id]
        for result_id in pending:
            self.set_status(db, result_id, "LOST")
        return pending
