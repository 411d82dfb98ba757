from __future__ import annotations

from app.infrastructure.repositories.base import BaseRepository


class CompanyRepository(BaseRepository):
    def create_company(self, db, company_id: str, name: str) -> bool:
        """Insert a company; False when the id is already taken."""
        cursor = db.execute(
            """
            INSERT INTO companies (id, name)
            VALUES (?, ?)
            ON CONFLICT DO NOTHING
            """,
            (company_id, name),
        )
        return (cursor.rowcount or 0) > 0

    def ensure_company(self, db, company_id: str, name: str) -> None:
        self.create_company(db, company_id, name)

    def get_by_id(self, db, company_id: str) -> dict | None:
        row = db.execute(
            "SELECT id, name, created_at FROM companies WHERE id = ?",
            (company_id,),
        ).fetchone()
        return self.row_to_dict(row)
