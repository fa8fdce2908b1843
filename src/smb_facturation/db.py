# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for SMB Facturation.

This module stores the only piece of state the invoicing core needs between
two runs: the enterprise invoice counter. It also keeps a log of every
number it has issued, so that the CLI can list them and so that a number can
never be handed out twice.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) invoice_counter
   Single-row table holding the counter state.

   Columns:
   - id             INTEGER PRIMARY KEY CHECK (id = 1)
   - next_sequence  INTEGER NOT NULL  -- sequence used by the next invoice
   - prefix         TEXT    NOT NULL  -- enterprise invoice prefix
   - updated_at     TEXT              -- UTC timestamp of last modification

2) issued_numbers
   One row per generated invoice number.

   Columns:
   - id              INTEGER PRIMARY KEY AUTOINCREMENT
   - number          TEXT    NOT NULL UNIQUE
   - sequence        INTEGER NOT NULL
   - client_initials TEXT    NOT NULL
   - issue_date      TEXT    NOT NULL  -- ISO date "YYYY-MM-DD"
   - created_at      TEXT    NOT NULL  -- UTC timestamp

------------------------------------------------------------------------------
Concurrency
------------------------------------------------------------------------------

`issue_invoice_number` reads the counter, formats the number, stores the
incremented counter and logs the number inside a single
`BEGIN IMMEDIATE` transaction. SQLite grants the write lock up front, so two
processes sharing the same database file cannot obtain the same sequence.

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- All timestamps are stored as ISO-8601 text (UTC).
- The counter row is created lazily by `init_database`.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path

import pandas as pd

from .models import InvoiceNumberState
from .numbering import generate_invoice_number, reset_annual_sequence

logger = logging.getLogger(__name__)

ISSUED_COLUMNS = ["id", "number", "sequence", "client_initials", "issue_date", "created_at"]


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for SMB Facturation.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    return sqlite3.connect(cfg.path)


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _create_schema_if_needed(conn: sqlite3.Connection, prefix: str) -> None:
    """
    Create tables and the counter row if they do not exist yet.

    This function is idempotent. An existing counter row is left untouched,
    whatever `prefix` is.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS invoice_counter (
            id            INTEGER PRIMARY KEY CHECK (id = 1),
            next_sequence INTEGER NOT NULL,
            prefix        TEXT    NOT NULL DEFAULT '',
            updated_at    TEXT
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS issued_numbers (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            number          TEXT    NOT NULL UNIQUE,
            sequence        INTEGER NOT NULL,
            client_initials TEXT    NOT NULL,
            issue_date      TEXT    NOT NULL,  -- ISO date 'YYYY-MM-DD'
            created_at      TEXT    NOT NULL
        );
        """
    )

    conn.execute(
        """
        INSERT OR IGNORE INTO invoice_counter (id, next_sequence, prefix, updated_at)
        VALUES (1, 1, ?, ?);
        """,
        (prefix, _now_utc_iso()),
    )

    conn.commit()


def _read_state(conn: sqlite3.Connection) -> InvoiceNumberState:
    cur = conn.execute("SELECT next_sequence, prefix FROM invoice_counter WHERE id = 1;")
    row = cur.fetchone()
    if row is None:
        raise RuntimeError("Invoice counter row is missing; call init_database first.")
    return InvoiceNumberState(next_sequence=int(row[0]), prefix=str(row[1]))


def _write_state(conn: sqlite3.Connection, state: InvoiceNumberState) -> None:
    conn.execute(
        """
        UPDATE invoice_counter
           SET next_sequence = ?, prefix = ?, updated_at = ?
         WHERE id = 1;
        """,
        (state.next_sequence, state.prefix, _now_utc_iso()),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig, prefix: str = "") -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file (and its parent directory) if it does not exist.
    - Creates the tables and the counter row (starting at 1).
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn, prefix)
    finally:
        conn.close()


def load_number_state(cfg: DatabaseConfig) -> InvoiceNumberState:
    """Return the stored invoice counter."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        return _read_state(conn)
    finally:
        conn.close()


def save_number_state(cfg: DatabaseConfig, state: InvoiceNumberState) -> None:
    """
    Persist the invoice counter.

    Raises
    ------
    ValueError
        If state.next_sequence is lower than 1.
    """
    if state.next_sequence < 1:
        raise ValueError("next_sequence must be >= 1.")

    init_database(cfg)

    conn = _connect(cfg)
    try:
        _write_state(conn, state)
        conn.commit()
    finally:
        conn.close()


def issue_invoice_number(
    cfg: DatabaseConfig,
    initials: str,
    issue_date: date,
) -> str:
    """
    Generate the next invoice number and persist the incremented counter.

    Reading the counter, storing its new value and logging the number happen
    in one write transaction, so concurrent callers sharing the database file
    are serialized.

    Returns
    -------
    str
        The generated invoice number (e.g. "03/25-0042-AB").
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        conn.execute("BEGIN IMMEDIATE;")
        try:
            state = _read_state(conn)
            number, new_state = generate_invoice_number(state, initials, issue_date)
            _write_state(conn, new_state)
            conn.execute(
                """
                INSERT INTO issued_numbers (
                    number, sequence, client_initials, issue_date, created_at
                )
                VALUES (?, ?, ?, ?, ?);
                """,
                (
                    number,
                    state.next_sequence,
                    initials,
                    issue_date.isoformat(),
                    _now_utc_iso(),
                ),
            )
        except Exception:
            conn.rollback()
            raise
        conn.commit()
    finally:
        conn.close()

    logger.debug("Issued invoice number %s (sequence %d)", number, state.next_sequence)
    return number


def reset_sequence(cfg: DatabaseConfig) -> InvoiceNumberState:
    """
    Restart the stored counter at 1 and return the new state.

    Already issued numbers are kept in `issued_numbers`: numbers restart at
    0001 but differ by their month/year part.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        conn.execute("BEGIN IMMEDIATE;")
        try:
            new_state = reset_annual_sequence(_read_state(conn))
            _write_state(conn, new_state)
        except Exception:
            conn.rollback()
            raise
        conn.commit()
    finally:
        conn.close()

    logger.debug("Invoice counter reset to 1")
    return new_state


def list_issued_numbers(cfg: DatabaseConfig) -> pd.DataFrame:
    """
    Return the issued invoice numbers, most recent first.

    Columns:
    - id
    - number
    - sequence
    - client_initials
    - issue_date
    - created_at
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, number, sequence, client_initials, issue_date, created_at
              FROM issued_numbers
             ORDER BY id DESC;
            """
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    if not rows:
        return pd.DataFrame(columns=ISSUED_COLUMNS)

    df = pd.DataFrame(rows, columns=ISSUED_COLUMNS)
    df["issue_date"] = pd.to_datetime(df["issue_date"], format="%Y-%m-%d")
    df["created_at"] = pd.to_datetime(df["created_at"])
    return df
