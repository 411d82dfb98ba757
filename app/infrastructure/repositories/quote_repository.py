from __future__ import annotations

from app.db import inserted_id
from app.domain.contracts import CepAddress, QuoteInput
from app.infrastructure.repositories.base import CompanyScopedRepository


class QuoteRepository(CompanyScopedRepository):
    def create_quote(
        self,
        db,
        quote_input: QuoteInput,
        *,
        origin: CepAddress,
        destination: CepAddress,
        created_by: int,
    ) -> int:
        cursor = db.execute(
            """
            INSERT INTO quotes (
                company_id, created_by_user_id, status,
                origin_zip, destination_zip, weight_kg,
                length_cm, width_cm, height_cm, cargo_type,
                origin_city, origin_state, destination_city, destination_state
            )
            VALUES (?, ?, 'OPEN', ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (
                self.company_id,
                created_by,
                quote_input.origin_zip,
                quote_input.destination_zip,
                quote_input.weight_kg,
                quote_input.length_cm,
                quote_input.width_cm,
                quote_input.height_cm,
                quote_input.cargo_type,
                origin.city,
                origin.state,
                destination.city,
                destination.state,
            ),
        )
        return inserted_id(cursor)

    def get_by_id(self, db, quote_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM quotes
            WHERE id = ? AND company_id = ?
            LIMIT 1
            """,
            self.scoped_params((quote_id,)),
        ).fetchone()
        return self.row_to_dict(row)

    def list_quotes(self, db, *, limit: int = 200) -> list[dict]:
        rows = db.execute(
            """
            SELECT q.*,
                   (SELECT COUNT(*) FROM quote_results r WHERE r.quote_id = q.id) AS result_count,
                   (SELECT MIN(r.price_cents) FROM quote_results r WHERE r.quote_id = q.id) AS best_price_cents
            FROM quotes q
            WHERE q.company_id = ?
            ORDER BY q.created_at DESC, q.id DESC
            LIMIT ?
            """,
            (self.company_id, int(limit)),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def count_by_status(self, db, status: str) -> int:
        row = db.execute(
            "SELECT COUNT(*) AS total FROM quotes WHERE status = ? AND company_id = ?",
            self.scoped_params((status,)),
        ).fetchone()
        return int(row["total"] or 0) if row else 0

    def update_status(self, db, quote_id: int, status: str) -> None:
        db.execute(
            "UPDATE quotes SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ? AND company_id = ?",
            self.scoped_params((status, quote_id)),
        )

    def close_with_selection(
        self,
        db,
        quote_id: int,
        *,
        result_id: int,
        final_price_cents: int,
        final_deadline_days: int,
    ) -> None:
        db.execute(
            """
            UPDATE quotes
            SET status = 'CLOSED',
                selected_result_id = ?,
                final_price_cents = ?,
                final_deadline_days = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND company_id = ?
            """,
            self.scoped_params((result_id, final_price_cents, final_deadline_days, quote_id)),
        )
