from __future__ import annotations

from werkzeug.security import generate_password_hash

from app.db import inserted_id
from app.infrastructure.repositories.base import BaseRepository


_PROFILE_COLUMNS = """
    p.id, p.email, p.password_hash, p.full_name, p.role, p.company_id,
    c.id AS carrier_id, c.name AS carrier_name, co.name AS company_name
"""


class ProfileRepository(BaseRepository):
    def find_by_email(self, db, email: str) -> dict | None:
        row = db.execute(
            f"""
            SELECT {_PROFILE_COLUMNS}
            FROM profiles p
            LEFT JOIN carriers c ON c.owner_user_id = p.id
            LEFT JOIN companies co ON co.id = p.company_id
            WHERE p.email = ?
            LIMIT 1
            """,
            (email,),
        ).fetchone()
        return self.row_to_dict(row)

    def get_by_id(self, db, user_id: int) -> dict | None:
        row = db.execute(
            f"""
            SELECT {_PROFILE_COLUMNS}
            FROM profiles p
            LEFT JOIN carriers c ON c.owner_user_id = p.id
            LEFT JOIN companies co ON co.id = p.company_id
            WHERE p.id = ?
            LIMIT 1
            """,
            (user_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def email_exists(self, db, email: str) -> bool:
        row = db.execute("SELECT 1 FROM profiles WHERE email = ?", (email,)).fetchone()
        return bool(row)

    def create_profile(
        self,
        db,
        *,
        email: str,
        password: str,
        full_name: str | None,
        role: str | None,
        company_id: str | None,
    ) -> int:
        password_hash = generate_password_hash(password)
        cursor = db.execute(
            """
            INSERT INTO profiles (email, password_hash, full_name, role, company_id)
            VALUES (?, ?, ?, ?, ?)
            RETURNING id
            """,
            (email, password_hash, full_name, role, company_id),
        )
        return inserted_id(cursor)
