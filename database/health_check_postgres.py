from __future__ import annotations

import os
import sys

import psycopg2

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from app.db import SCHEMA_TABLES


def missing_tables(existing: list[str]) -> list[str]:
    present = set(existing)
    return sorted(table for table in SCHEMA_TABLES if table not in present)


def main() -> int:
    db_url = os.environ.get("DATABASE_URL")
    if not db_url:
        raise RuntimeError("Defina DATABASE_URL para o Postgres.")

    conn = psycopg2.connect(db_url)
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()
            cur.execute(
                """
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = 'public'
                ORDER BY table_name
                """
            )
            tables = [row[0] for row in cur.fetchall()]
    finally:
        conn.close()

    missing = missing_tables(tables)
    if missing:
        print("Postgres acessivel, mas faltam tabelas:", ", ".join(missing))
        return 1
    print("Postgres OK. Tabelas:", ", ".join(tables))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as exc:
        print(f"Health check falhou: {exc}")
        sys.exit(1)
