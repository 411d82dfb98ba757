from __future__ import annotations

from app.db import inserted_id
from app.infrastructure.repositories.base import BaseRepository


class CarrierRepository(BaseRepository):
    def create_carrier(self, db, *, name: str, owner_user_id: int | None) -> int:
        cursor = db.execute(
            """
            INSERT INTO carriers (name, owner_user_id)
            VALUES (?, ?)
            RETURNING id
            """,
            (name, owner_user_id),
        )
        return inserted_id(cursor)

    def get_by_id(self, db, carrier_id: int) -> dict | None:
        row = db.execute(
            "SELECT id, name, owner_user_id, created_at FROM carriers WHERE id = ?",
            (carrier_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def list_priced_carrier_ids(self, db) -> list[int]:
        """Carriers owning at least one active rate table."""
        rows = db.execute(
            """
            SELECT DISTINCT carrier_id
            FROM freight_rate_tables
            WHERE is_active = ?
            ORDER BY carrier_id
            """,
            (True,),
        ).fetchall()
        return [int(row["carrier_id"]) for row in rows]
