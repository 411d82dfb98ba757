import sqlite3
from typing import Iterable, List

try:
    import psycopg2
    import psycopg2.extras
except ImportError:  # pragma: no cover - optional dependency for postgres
    psycopg2 = None

from flask import current_app, g


class Database:
    def __init__(self, backend: str, connection):
        self.backend = backend
        self._conn = connection

    def execute(self, sql: str, params: Iterable | None = None):
        if self.backend == "postgres":
            cursor = self._conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            if params:
                sql = _convert_qmark_to_pg(sql)
                cursor.execute(sql, list(params))
            else:
                cursor.execute(sql)
            return cursor
        return self._conn.execute(sql, params or ())

    def executescript(self, sql: str):
        if self.backend != "postgres":
            return self._conn.executescript(sql)
        for statement in _split_sql_statements(sql):
            if statement.strip():
                self.execute(statement)

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.close()


def is_integrity_error(exc: BaseException) -> bool:
    if isinstance(exc, sqlite3.IntegrityError):
        return True
    return psycopg2 is not None and isinstance(exc, psycopg2.IntegrityError)


def inserted_id(cursor) -> int:
    # Drain the cursor so sqlite finishes the RETURNING statement before commit.
    row = cursor.fetchall()[0]
    return int(row["id"] if isinstance(row, dict) else row[0])


def _split_sql_statements(sql: str) -> List[str]:
    statements = []
    current = []
    in_single = False
    in_double = False
    in_dollar = False
    i = 0
    while i < len(sql):
        ch = sql[i]
        nxt = sql[i : i + 2]
        if not in_single and not in_double and nxt == "$$":
            in_dollar = not in_dollar
            current.append("$$")
            i += 2
            continue
        if not in_dollar:
            if ch == "'" and not in_double:
                in_single = not in_single
            elif ch == '"' and not in_single:
                in_double = not in_double
            elif ch == ";" and not in_single and not in_double:
                statements.append("".join(current))
                current = []
                i += 1
                continue
        current.append(ch)
        i += 1
    if current:
        statements.append("".join(current))
    return statements


def _convert_qmark_to_pg(sql: str) -> str:
    return sql.replace("?", "%s")


def _connect_database(db_path: str) -> Database:
    if db_path.lower().startswith("postgres"):
        if psycopg2 is None:
            raise RuntimeError("psycopg2 nao instalado.")
        conn = psycopg2.connect(db_path)
        conn.autocommit = True
        return Database("postgres", conn)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return Database("sqlite", conn)


def get_db():
    if "db" not in g:
        db_path = current_app.config["DB_PATH"]
        g.db = _connect_database(db_path)
    return g.db


def close_db(_error=None):
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db():
    db = get_db()
    if db.backend == "postgres":
        _init_db_postgres(db)
        return

    _init_db_sqlite(db)
    db.commit()


SCHEMA_TABLES = [
    "status_events",
    "quote_results",
    "quotes",
    "freight_rate_table_rows",
    "freight_rate_tables",
    "freight_quotes",
    "freight_requests",
    "carriers",
    "profiles",
    "companies",
]


def _init_db_sqlite(db: Database):
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS companies (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS profiles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            role TEXT CHECK (role IS NULL OR role IN ('ADMIN','CLIENTE','TRANSPORTADOR')),
            company_id TEXT REFERENCES companies(id),
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS carriers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            owner_user_id INTEGER UNIQUE REFERENCES profiles(id),
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS freight_requests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            company_id TEXT NOT NULL REFERENCES companies(id),
            created_by INTEGER NOT NULL REFERENCES profiles(id),
            status TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN','CLOSED','CANCELLED')),
            origin_zip TEXT,
            origin_city TEXT NOT NULL,
            origin_state TEXT NOT NULL,
            destination_zip TEXT,
            destination_city TEXT NOT NULL,
            destination_state TEXT NOT NULL,
            cargo_type TEXT,
            cargo_description TEXT,
            weight_kg REAL,
            volume_m3 REAL,
            length_cm INTEGER,
            width_cm INTEGER,
            height_cm INTEGER,
            invoice_value_cents INTEGER,
            pickup_date TEXT,
            selected_quote_id INTEGER,
            final_price_cents INTEGER,
            final_deadline_days INTEGER,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS freight_quotes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            freight_request_id INTEGER NOT NULL REFERENCES freight_requests(id),
            carrier_id INTEGER NOT NULL REFERENCES carriers(id),
            price_cents INTEGER NOT NULL CHECK (price_cents > 0),
            deadline_days INTEGER NOT NULL CHECK (deadline_days > 0),
            notes TEXT,
            status TEXT NOT NULL DEFAULT 'SENT' CHECK (status IN ('SENT','WITHDRAWN','WON','LOST')),
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (freight_request_id, carrier_id)
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS freight_rate_tables (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            carrier_id INTEGER NOT NULL REFERENCES carriers(id),
            name TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS freight_rate_table_rows (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            rate_table_id INTEGER NOT NULL REFERENCES freight_rate_tables(id),
            uf_origem TEXT NOT NULL,
            uf_destino TEXT NOT NULL,
            peso_min_kg REAL NOT NULL CHECK (peso_min_kg >= 0),
            peso_max_kg REAL NOT NULL,
            preco_cents INTEGER NOT NULL CHECK (preco_cents >= 0),
            prazo_dias INTEGER NOT NULL CHECK (prazo_dias > 0),
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CHECK (peso_max_kg >= peso_min_kg)
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS quotes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            company_id TEXT NOT NULL REFERENCES companies(id),
            created_by_user_id INTEGER NOT NULL REFERENCES profiles(id),
            status TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN','CLOSED','CANCELLED')),
            origin_zip TEXT NOT NULL,
            destination_zip TEXT NOT NULL,
            weight_kg REAL NOT NULL,
            length_cm REAL,
            width_cm REAL,
            height_cm REAL,
            cargo_type TEXT,
            origin_city TEXT NOT NULL,
            origin_state TEXT NOT NULL,
            destination_city TEXT NOT NULL,
            destination_state TEXT NOT NULL,
            selected_result_id INTEGER,
            final_price_cents INTEGER,
            final_deadline_days INTEGER,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS quote_results (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            quote_id INTEGER NOT NULL REFERENCES quotes(id),
            carrier_id INTEGER NOT NULL REFERENCES carriers(id),
            origin_source TEXT NOT NULL DEFAULT 'TABELA' CHECK (origin_source IN ('TABELA','API')),
            price_cents INTEGER NOT NULL,
            deadline_days INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'SENT' CHECK (status IN ('SENT','WITHDRAWN','WON','LOST')),
            meta TEXT,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (quote_id, carrier_id)
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS status_events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            entity TEXT NOT NULL,
            entity_id INTEGER NOT NULL,
            from_status TEXT,
            to_status TEXT,
            reason TEXT,
            company_id TEXT,
            occurred_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    _create_indexes(db)


def _init_db_postgres(db: Database) -> None:
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS companies (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS profiles (
            id SERIAL PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            role TEXT CHECK (role IS NULL OR role IN ('ADMIN','CLIENTE','TRANSPORTADOR')),
            company_id TEXT REFERENCES companies(id),
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS carriers (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            owner_user_id INTEGER UNIQUE REFERENCES profiles(id),
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS freight_requests (
            id SERIAL PRIMARY KEY,
            company_id TEXT NOT NULL REFERENCES companies(id),
            created_by INTEGER NOT NULL REFERENCES profiles(id),
            status TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN','CLOSED','CANCELLED')),
            origin_zip TEXT,
            origin_city TEXT NOT NULL,
            origin_state TEXT NOT NULL,
            destination_zip TEXT,
            destination_city TEXT NOT NULL,
            destination_state TEXT NOT NULL,
            cargo_type TEXT,
            cargo_description TEXT,
            weight_kg DOUBLE PRECISION,
            volume_m3 DOUBLE PRECISION,
            length_cm INTEGER,
            width_cm INTEGER,
            height_cm INTEGER,
            invoice_value_cents BIGINT,
            pickup_date DATE,
            selected_quote_id INTEGER,
            final_price_cents BIGINT,
            final_deadline_days INTEGER,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS freight_quotes (
            id SERIAL PRIMARY KEY,
            freight_request_id INTEGER NOT NULL REFERENCES freight_requests(id),
            carrier_id INTEGER NOT NULL REFERENCES carriers(id),
            price_cents BIGINT NOT NULL CHECK (price_cents > 0),
            deadline_days INTEGER NOT NULL CHECK (deadline_days > 0),
            notes TEXT,
            status TEXT NOT NULL DEFAULT 'SENT' CHECK (status IN ('SENT','WITHDRAWN','WON','LOST')),
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (freight_request_id, carrier_id)
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS freight_rate_tables (
            id SERIAL PRIMARY KEY,
            carrier_id INTEGER NOT NULL REFERENCES carriers(id),
            name TEXT NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS freight_rate_table_rows (
            id SERIAL PRIMARY KEY,
            rate_table_id INTEGER NOT NULL REFERENCES freight_rate_tables(id) ON DELETE CASCADE,
            uf_origem CHAR(2) NOT NULL,
            uf_destino CHAR(2) NOT NULL,
            peso_min_kg DOUBLE PRECISION NOT NULL CHECK (peso_min_kg >= 0),
            peso_max_kg DOUBLE PRECISION NOT NULL,
            preco_cents BIGINT NOT NULL CHECK (preco_cents >= 0),
            prazo_dias INTEGER NOT NULL CHECK (prazo_dias > 0),
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CHECK (peso_max_kg >= peso_min_kg)
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS quotes (
            id SERIAL PRIMARY KEY,
            company_id TEXT NOT NULL REFERENCES companies(id),
            created_by_user_id INTEGER NOT NULL REFERENCES profiles(id),
            status TEXT NOT NULL DEFAULT 'OPEN' CHECK (status IN ('OPEN','CLOSED','CANCELLED')),
            origin_zip TEXT NOT NULL,
            destination_zip TEXT NOT NULL,
            weight_kg DOUBLE PRECISION NOT NULL,
            length_cm DOUBLE PRECISION,
            width_cm DOUBLE PRECISION,
            height_cm DOUBLE PRECISION,
            cargo_type TEXT,
            origin_city TEXT NOT NULL,
            origin_state TEXT NOT NULL,
            destination_city TEXT NOT NULL,
            destination_state TEXT NOT NULL,
            selected_result_id INTEGER,
            final_price_cents BIGINT,
            final_deadline_days INTEGER,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS quote_results (
            id SERIAL PRIMARY KEY,
            quote_id INTEGER NOT NULL REFERENCES quotes(id) ON DELETE CASCADE,
            carrier_id INTEGER NOT NULL REFERENCES carriers(id),
            origin_source TEXT NOT NULL DEFAULT 'TABELA' CHECK (origin_source IN ('TABELA','API')),
            price_cents BIGINT NOT NULL,
            deadline_days INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'SENT' CHECK (status IN ('SENT','WITHDRAWN','WON','LOST')),
            meta TEXT,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (quote_id, carrier_id)
        )
        """
    )

    db.execute(
        """
        CREATE TABLE IF NOT EXISTS status_events (
            id SERIAL PRIMARY KEY,
            entity TEXT NOT NULL,
            entity_id INTEGER NOT NULL,
            from_status TEXT,
            to_status TEXT,
            reason TEXT,
            company_id TEXT,
            occurred_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    _create_indexes(db)
    _create_postgres_updated_at_triggers(db)


def _create_indexes(db: Database) -> None:
    db.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_freight_requests_company_status
        ON freight_requests (company_id, status)
        """
    )
    db.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_rate_tables_carrier_active
        ON freight_rate_tables (carrier_id, is_active)
        """
    )
    db.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_rate_rows_lookup
        ON freight_rate_table_rows (rate_table_id, uf_origem, uf_destino)
        """
    )
    db.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_quotes_company
        ON quotes (company_id, created_at)
        """
    )
    db.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_status_events_entity
        ON status_events (entity, entity_id)
        """
    )


def _create_postgres_updated_at_triggers(db: Database) -> None:
    db.execute(
        """
        CREATE OR REPLACE FUNCTION set_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = CURRENT_TIMESTAMP;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
        """
    )

    tables = [
        "profiles",
        "carriers",
        "freight_requests",
        "freight_quotes",
        "freight_rate_tables",
        "quotes",
    ]

    for table in tables:
        db.execute(
            f"""
            DROP TRIGGER IF EXISTS trg_{table}_updated_at ON {table};
            CREATE TRIGGER trg_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW
            EXECUTE FUNCTION set_updated_at();
            """
        )
