from __future__ import annotations

from app.db import inserted_id
from app.domain.contracts import ProposalInput
from app.infrastructure.repositories.base import BaseRepository, CarrierScopedRepository


_REQUEST_SUMMARY_COLUMNS = """
    r.id, r.company_id, r.status, r.origin_zip, r.origin_city, r.origin_state,
    r.destination_zip, r.destination_city, r.destination_state, r.cargo_type,
    r.cargo_description, r.weight_kg, r.volume_m3, r.length_cm, r.width_cm,
    r.height_cm, r.invoice_value_cents, r.pickup_date, r.selected_quote_id, r.created_at
"""


class OpenRequestRepository(BaseRepository):
    """Requests visible to carriers across companies."""

    def list_open_requests(self, db, *, carrier_id: int | None = None, limit: int = 200) -> list[dict]:
        rows = db.execute(
            f"""
            SELECT {_REQUEST_SUMMARY_COLUMNS},
                   q.id AS my_proposal_id,
                   q.price_cents AS my_price_cents,
                   q.deadline_days AS my_deadline_days,
                   q.status AS my_proposal_status
            FROM freight_requests r
            LEFT JOIN freight_quotes q ON q.freight_request_id = r.id AND q.carrier_id = ?
            WHERE r.status = 'OPEN'
            ORDER BY r.created_at DESC, r.id DESC
            LIMIT ?
            """,
            (carrier_id, int(limit)),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def get_request(self, db, request_id: int) -> dict | None:
        row = db.execute(
            f"""
            SELECT {_REQUEST_SUMMARY_COLUMNS}
            FROM freight_requests r
            WHERE r.id = ?
            LIMIT 1
            """,
            (request_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def count_open(self, db) -> int:
        row = db.execute("SELECT COUNT(*) AS total FROM freight_requests WHERE status = 'OPEN'").fetchone()
        return int(row["total"] or 0) if row else 0


class ProposalRepository(CarrierScopedRepository):
    """Proposals sent by one carrier."""

    def get_for_request(self, db, request_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM freight_quotes
            WHERE freight_request_id = ? AND carrier_id = ?
            LIMIT 1
            """,
            self.scoped_params((request_id,)),
        ).fetchone()
        return self.row_to_dict(row)

    def get_by_id(self, db, proposal_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT q.*, r.status AS request_status, r.company_id AS request_company_id,
                   r.selected_quote_id AS request_selected_quote_id
            FROM freight_quotes q
            JOIN freight_requests r ON r.id = q.freight_request_id
            WHERE q.id = ? AND q.carrier_id = ?
            LIMIT 1
            """,
            self.scoped_params((proposal_id,)),
        ).fetchone()
        return self.row_to_dict(row)

    def create(self, db, proposal: ProposalInput) -> int:
        cursor = db.execute(
            """
            INSERT INTO freight_quotes (freight_request_id, carrier_id, price_cents, deadline_days, notes, status)
            VALUES (?, ?, ?, ?, ?, 'SENT')
            RETURNING id
            """,
            (
                proposal.freight_request_id,
                self.carrier_id,
                proposal.price_cents,
                proposal.deadline_days,
                proposal.notes,
            ),
        )
        return inserted_id(cursor)

    def update_status(self, db, proposal_id: int, status: str) -> None:
        db.execute(
            "UPDATE freight_quotes SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ? AND carrier_id = ?",
            self.scoped_params((status, proposal_id)),
        )

    def count_by_status(self, db, status: str) -> int:
        row = db.execute(
            "SELECT COUNT(*) AS total FROM freight_quotes WHERE status = ? AND carrier_id = ?",
            self.scoped_params((status,)),
        ).fetchone()
        return int(row["total"] or 0) if row else 0
