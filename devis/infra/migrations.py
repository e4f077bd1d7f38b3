# devis/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (devis, opções de expedição, transporte local)
V2: adiciona o preço por kg nas opções de expedição
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Devis (valores monetários na moeda nativa `currency`)
    """
    CREATE TABLE IF NOT EXISTS quote (
        id TEXT PRIMARY KEY,
        supplier_name TEXT NOT NULL,
        product_name TEXT NOT NULL,
        unit_price REAL NOT NULL DEFAULT 0 CHECK (unit_price >= 0),
        weight_kg REAL NOT NULL DEFAULT 0 CHECK (weight_kg >= 0),
        quantity INTEGER NOT NULL DEFAULT 0 CHECK (quantity >= 0),
        currency TEXT NOT NULL,            -- 'EUR' | 'USD' | 'XOF'
        created_at TEXT NOT NULL
    );
    """,
    # No máximo uma opção por método de expedição
    """
    CREATE TABLE IF NOT EXISTS shipping_option (
        quote_id TEXT NOT NULL,
        shipping_type TEXT NOT NULL,       -- 'direct-air' | 'forwarder-standard' | 'forwarder-express'
        shipping_cost REAL NOT NULL DEFAULT 0,
        delivery_cost REAL NOT NULL DEFAULT 0,
        PRIMARY KEY (quote_id, shipping_type),
        FOREIGN KEY (quote_id) REFERENCES quote(id) ON DELETE CASCADE
    );
    """,
    # Trechos de transporte local (ordem = position)
    """
    CREATE TABLE IF NOT EXISTS local_transport (
        id TEXT PRIMARY KEY,
        quote_id TEXT NOT NULL,
        position INTEGER NOT NULL,
        name TEXT NOT NULL,
        cost REAL NOT NULL DEFAULT 0,
        FOREIGN KEY (quote_id) REFERENCES quote(id) ON DELETE CASCADE
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    # NULL = opção sem cobrança por peso
    _ensure_column(conn, "shipping_option", "price_per_kg", "price_per_kg REAL")


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
