"""SQLite log of analyzed transactions.

Each row keeps the submitted transaction and its analysis as JSON, plus a
few columns that the history page filters and sorts on. Rows are scoped by
username, so every signed-in user only sees their own session history.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import List, Optional, Union

from safepay.models import ProcessedTransaction


PathLike = Union[str, Path]


def connect_db(db_path: PathLike) -> sqlite3.Connection:
    """Open a connection to the SQLite database, creating its directory if needed."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: PathLike) -> None:
    """Initialize the transactions database if it does not already exist."""
    conn = connect_db(db_path)
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS transactions (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT UNIQUE NOT NULL,
            username TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            merchant TEXT,
            location TEXT,
            amount REAL,
            risk_score REAL,
            status TEXT,
            payload TEXT NOT NULL
        )
        """
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS idx_transactions_user ON transactions (username, seq)"
    )
    conn.commit()
    conn.close()


def log_transaction(db_path: PathLike, username: str, processed: ProcessedTransaction) -> None:
    """Insert an analyzed transaction for `username`."""
    conn = connect_db(db_path)
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO transactions
            (id, username, timestamp, merchant, location, amount, risk_score, status, payload)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            processed.id,
            username,
            processed.timestamp,
            processed.merchant,
            processed.location,
            processed.amount,
            processed.risk_score,
            processed.status.value,
            processed.model_dump_json(by_alias=True),
        ),
    )
    conn.commit()
    conn.close()


def _row_to_transaction(row: sqlite3.Row) -> ProcessedTransaction:
    return ProcessedTransaction.model_validate(json.loads(row["payload"]))


def get_transaction(db_path: PathLike, username: str, transaction_id: str) -> Optional[ProcessedTransaction]:
    """Return one of the user's transactions, or None when it is not theirs or unknown."""
    conn = connect_db(db_path)
    cur = conn.cursor()
    cur.execute(
        "SELECT payload FROM transactions WHERE username = ? AND id = ?",
        (username, transaction_id),
    )
    row = cur.fetchone()
    conn.close()
    return _row_to_transaction(row) if row is not None else None


def recent_transactions(
    db_path: PathLike,
    username: str,
    limit: Optional[int] = None,
    query: Optional[str] = None,
) -> List[ProcessedTransaction]:
    """Return the user's transactions, newest first.

    Parameters
    ----------
    limit : int, optional
        Maximum number of rows; all rows when omitted.
    query : str, optional
        Case-insensitive substring matched against merchant and location.
    """
    sql = "SELECT payload FROM transactions WHERE username = ?"
    params: list = [username]
    if query:
        pattern = f"%{query.strip().lower()}%"
        sql += " AND (LOWER(merchant) LIKE ? OR LOWER(location) LIKE ?)"
        params.extend([pattern, pattern])
    sql += " ORDER BY seq DESC"
    if limit is not None:
        sql += " LIMIT ?"
        params.append(int(limit))

    conn = connect_db(db_path)
    cur = conn.cursor()
    cur.execute(sql, params)
    rows = cur.fetchall()
    conn.close()
    return [_row_to_transaction(row) for row in rows]
