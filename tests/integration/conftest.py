"""
Integration test fixtures — PostgreSQL testcontainer and schema setup.

Provides a real PostgreSQL instance for each test session via testcontainers
and creates the three CRLSet tables. Each test gets a clean database via
truncation.
"""

from __future__ import annotations

import psycopg
import pytest
from testcontainers.postgres import PostgresContainer

DDL = """
CREATE TABLE crlset_snapshot (
    app_id          TEXT NOT NULL,
    status          TEXT NOT NULL,
    codebase        TEXT NOT NULL,
    fp              TEXT,
    hash            TEXT,
    hash_sha256     TEXT NOT NULL,
    size            TEXT,
    update_version  TEXT,
    crx_version     BIGINT NOT NULL,
    public_key      BYTEA NOT NULL,
    signature       BYTEA NOT NULL,
    header          JSONB NOT NULL,
    stored_at       TIMESTAMP WITH TIME ZONE NOT NULL
);

CREATE TABLE crlset_parent (
    spki_hash  BYTEA PRIMARY KEY,
    position   INTEGER NOT NULL
);

CREATE TABLE crlset_serial (
    spki_hash  BYTEA NOT NULL REFERENCES crlset_parent(spki_hash),
    position   INTEGER NOT NULL,
    serial     BYTEA NOT NULL,
    PRIMARY KEY (spki_hash, position)
);
"""

TRUNCATE_ALL = """
TRUNCATE crlset_serial, crlset_parent, crlset_snapshot CASCADE;
"""


def _psycopg_url(container: PostgresContainer) -> str:
    return container.get_connection_url().replace("postgresql+psycopg2", "postgresql")


@pytest.fixture(scope="session")
def postgres_container() -> PostgresContainer:
    """Start a PostgreSQL container for the entire test session."""
    with PostgresContainer("postgres:16-alpine") as pg:
        with psycopg.connect(_psycopg_url(pg)) as conn:
            conn.execute(DDL)
            conn.commit()
        yield pg


@pytest.fixture()
def dsn(postgres_container: PostgresContainer) -> str:
    """Return a psycopg-compatible DSN and truncate all tables before each test."""
    connection_url = _psycopg_url(postgres_container)
    with psycopg.connect(connection_url) as conn:
        conn.execute(TRUNCATE_ALL)
        conn.commit()
    return connection_url
