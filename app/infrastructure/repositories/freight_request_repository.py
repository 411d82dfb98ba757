from __future__ import annotations

from app.db import inserted_id
from app.domain.contracts import FreightRequestCreateInput
from app.infrastructure.repositories.base import CompanyScopedRepository


class FreightRequestRepository(CompanyScopedRepository):
    def create(self, db, request_input: FreightRequestCreateInput, *, created_by: int) -> int:
        cursor = db.execute(
            """
            INSERT INTO freight_requests (
                company_id, created_by, status,
                origin_zip, origin_city, origin_state,
                destination_zip, destination_city, destination_state,
                cargo_type, cargo_description, weight_kg, volume_m3,
                length_cm, width_cm, height_cm, invoice_value_cents, pickup_date
            )
            VALUES (?, ?, 'OPEN', ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (
                self.company_id,
                created_by,
                request_input.origin_zip,
                request_input.origin_city,
                request_input.origin_state,
                request_input.destination_zip,
                request_input.destination_city,
                request_input.destination_state,
                request_input.cargo_type,
                request_input.cargo_description,
                request_input.weight_kg,
                request_input.volume_m3,
                request_input.length_cm,
                request_input.width_cm,
                request_input.height_cm,
                request_input.invoice_value_cents,
                request_input.pickup_date,
            ),
        )
        return inserted_id(cursor)

    def get_by_id(self, db, request_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM freight_requests
            WHERE id = ? AND company_id = ?
            LIMIT 1
            """,
            self.scoped_params((request_id,)),
        ).fetchone()
        return self.row_to_dict(row)

    def list_requests(self, db, *, status: str | None = None, limit: int = 200) -> list[dict]:
        if status:
            rows = db.execute(
                """
                SELECT *
                FROM freight_requests
                WHERE status = ? AND company_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (status, self.company_id, int(limit)),
            ).fetchall()
        else:
            rows = db.execute(
                """
                SELECT *
                FROM freight_requests
                WHERE company_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (self.company_id, int(limit)),
            ).fetchall()
        return self.rows_to_dicts(rows)

    def count_by_status(self, db, status: str) -> int:
        row = db.execute(
            "SELECT COUNT(*) AS total FROM freight_requests WHERE status = ? AND company_id = ?",
            self.scoped_params((status,)),
        ).fetchone()
        return int(row["total"] or 0) if row else 0

    def list_proposals(self, db, request_id: int) -> list[dict]:
        rows = db.execute(
            """
            SELECT q.id, q.freight_request_id, q.carrier_id, q.price_cents, q.deadline_days,
                   q.notes, q.status, q.created_at, c.name AS carrier_name
            FROM freight_quotes q
            JOIN freight_requests r ON r.id = q.freight_request_id
            LEFT JOIN carriers c ON c.id = q.carrier_id
            WHERE q.freight_request_id = ? AND r.company_id = ?
            ORDER BY q.price_cents ASC, q.deadline_days ASC, q.id ASC
            """,
            self.scoped_params((request_id,)),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def get_proposal(self, db, request_id: int, proposal_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT q.*
            FROM freight_quotes q
            JOIN freight_requests r ON r.id = q.freight_request_id
            WHERE q.id = ? AND q.freight_request_id = ? AND r.company_id = ?
            LIMIT 1
            """,
            self.scoped_params((proposal_id, request_id)),
        ).fetchone()
        return self.row_to_dict(row)

    def update_status(self, db, request_id: int, status: str) -> None:
        db.execute(
            "UPDATE freight_requests SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ? AND company_id = ?",
            self.scoped_params((status, request_id)),
        )

    def close_with_selection(
        self,
        db,
        request_id: int,
        *,
        proposal_id: int,
        final_price_cents: int,
        final_deadline_days: int,
    ) -> None:
        db.execute(
            """
            UPDATE freight_requests
            SET status = 'CLOSED',
                selected_quote_id = ?,
                final_price_cents = ?,
                final_deadline_days = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ? AND company_id = ?
            """,
            self.scoped_params((proposal_id, final_price_cents, final_deadline_days, request_id)),
        )

    def set_proposal_status(self, db, proposal_id: int, status: str) -> None:
        db.execute(
            """
            UPDATE freight_quotes
            SET status = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
              AND freight_request_id IN (SELECT id FROM freight_requests WHERE company_id = ?)
            """,
            self.scoped_params((status, proposal_id)),
        )

    def lose_pending_proposals(self, db, request_id: int, *, exclude_id: int | None = None) -> list[int]:
        """Mark every SENT proposal of the request as LOST and return their ids."""
        pending = [
            int(row["id"])
            for row in db.execute(
                """
                SELECT q.id
                FROM freight_quotes q
                JOIN freight_requests r ON r.id = q.freight_request_id
                WHERE q.freight_request_id = ? AND q.status = 'SENT' AND r.company_id = ?
                """,
                self.scoped_params((request_id,)),
            ).fetchall()
        ]
        pending = [proposal_id for proposal_id in pending if proposal_id != exclude_id]
        for proposal_id in pending:
            self.set_proposal_status(db, proposal_id, "LOST")
        return pending
