from __future__ import annotations

from app.db import inserted_id
from app.domain.contracts import RateRowInput
from app.infrastructure.repositories.base import CarrierScopedRepository


def _with_flags(row: dict | None, *names: str) -> dict | None:
    if row is None:
        return None
    for name in names:
        if name in row:
            row[name] = bool(row[name])
    return row


class RateTableRepository(CarrierScopedRepository):
    def list_tables(self, db) -> list[dict]:
        rows = db.execute(
            """
            SELECT t.id, t.carrier_id, t.name, t.is_active, t.created_at, t.updated_at,
                   (SELECT COUNT(*) FROM freight_rate_table_rows r WHERE r.rate_table_id = t.id) AS row_count
            FROM freight_rate_tables t
            WHERE t.carrier_id = ?
            ORDER BY t.created_at DESC, t.id DESC
            """,
            (self.carrier_id,),
        ).fetchall()
        return [_with_flags(row, "is_active") for row in self.rows_to_dicts(rows)]

    def get_table(self, db, table_id: int) -> dict | None:
        row = db.execute(
            """
            SELECT id, carrier_id, name, is_active, created_at, updated_at
            FROM freight_rate_tables
            WHERE id = ? AND carrier_id = ?
            LIMIT 1
            """,
            self.scoped_params((table_id,)),
        ).fetchone()
        return _with_flags(self.row_to_dict(row), "is_active")

    def create_table(self, db, name: str, *, is_active: bool = True) -> int:
        cursor = db.execute(
            """
            INSERT INTO freight_rate_tables (carrier_id, name, is_active)
            VALUES (?, ?, ?)
            RETURNING id
            """,
            (self.carrier_id, name, bool(is_active)),
        )
        return inserted_id(cursor)

    def rename_table(self, db, table_id: int, name: str) -> None:
        db.execute(
            "UPDATE freight_rate_tables SET name = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ? AND carrier_id = ?",
            self.scoped_params((name, table_id)),
        )

    def set_table_active(self, db, table_id: int, is_active: bool) -> None:
        db.execute(
            "UPDATE freight_rate_tables SET is_active = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ? AND carrier_id = ?",
            self.scoped_params((bool(is_active), table_id)),
        )

    def count_active_tables(self, db) -> int:
        row = db.execute(
            "SELECT COUNT(*) AS total FROM freight_rate_tables WHERE is_active = ? AND carrier_id = ?",
            self.scoped_params((True,)),
        ).fetchone()
        return int(row["total"] or 0) if row else 0

    def list_rows(self, db, table_id: int) -> list[dict]:
        rows = db.execute(
            """
            SELECT r.id, r.rate_table_id, r.uf_origem, r.uf_destino, r.peso_min_kg, r.peso_max_kg,
                   r.preco_cents, r.prazo_dias, r.is_active, r.created_at
            FROM freight_rate_table_rows r
            JOIN freight_rate_tables t ON t.id = r.rate_table_id
            WHERE r.rate_table_id = ? AND t.carrier_id = ?
            ORDER BY r.created_at DESC, r.id DESC
            """,
            self.scoped_params((table_id,)),
        ).fetchall()
        return [_with_flags(row, "is_active") for row in self.rows_to_dicts(rows)]

    def add_row(self, db, table_id: int, row_input: RateRowInput) -> int:
        cursor = db.execute(
            """
            INSERT INTO freight_rate_table_rows (
                rate_table_id, uf_origem, uf_destino, peso_min_kg, peso_max_kg,
                preco_cents, prazo_dias, is_active
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            (
                table_id,
                row_input.uf_origem,
                row_input.uf_destino,
                row_input.peso_min_kg,
                row_input.peso_max_kg,
                row_input.preco_cents,
                row_input.prazo_dias,
                bool(row_input.is_active),
            ),
        )
        return inserted_id(cursor)

    def delete_row(self, db, table_id: int, row_id: int) -> bool:
        cursor = db.execute(
            """
            DELETE FROM freight_rate_table_rows
            WHERE id = ? AND rate_table_id = ?
              AND rate_table_id IN (SELECT id FROM freight_rate_tables WHERE carrier_id = ?)
            """,
            self.scoped_params((row_id, table_id)),
        )
        return (cursor.rowcount or 0) > 0

    def list_candidate_rows(self, db, *, uf_origem: str, uf_destino: str, peso_kg: float) -> list[dict]:
        """Active rows of active tables covering the UF pair and weight, unranked."""
        rows = db.execute(
            """
            SELECT r.id, r.rate_table_id, r.uf_origem, r.uf_destino, r.peso_min_kg, r.peso_max_kg,
                   r.preco_cents, r.prazo_dias, r.is_active, t.is_active AS table_is_active
            FROM freight_rate_table_rows r
            JOIN freight_rate_tables t ON t.id = r.rate_table_id
            WHERE t.carrier_id = ?
              AND t.is_active = ?
              AND r.is_active = ?
              AND UPPER(r.uf_origem) = ?
              AND UPPER(r.uf_destino) = ?
              AND r.peso_min_kg <= ?
              AND r.peso_max_kg >= ?
            """,
            (
                self.carrier_id,
                True,
                True,
                str(uf_origem or "").strip().upper(),
                str(uf_destino or "").strip().upper(),
                float(peso_kg),
                float(peso_kg),
            ),
        ).fetchall()
        return [_with_flags(row, "is_active", "table_is_active") for row in self.rows_to_dicts(rows)]
