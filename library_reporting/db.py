"""SQLite database schema, connection management and the report queries."""

import sqlite3
from pathlib import Path
from contextlib import contextmanager
from datetime import date, datetime

from .config import DB_PATH
from .formatters import utc_now
from .periods import RecordFilter, parse_date

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS books (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    title              TEXT NOT NULL,
    author             TEXT NOT NULL,
    isbn               TEXT NOT NULL UNIQUE,
    description        TEXT,
    available_quantity INTEGER NOT NULL DEFAULT 0,
    shelf_location     TEXT,
    created_at         TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S','now'))
);

CREATE TABLE IF NOT EXISTS borrowers (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    name       TEXT NOT NULL,
    email      TEXT NOT NULL UNIQUE,
    is_admin   INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S','now'))
);

CREATE TABLE IF NOT EXISTS borrowing_history (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    book_id       INTEGER NOT NULL,
    borrower_id   INTEGER NOT NULL,
    checkout_date TEXT NOT NULL,
    return_date   TEXT NOT NULL,
    returned_date TEXT,
    is_returned   INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (book_id) REFERENCES books(id),
    FOREIGN KEY (borrower_id) REFERENCES borrowers(id),
    CHECK (return_date >= checkout_date)
);

CREATE INDEX IF NOT EXISTS idx_history_checkout ON borrowing_history(checkout_date);
CREATE INDEX IF NOT EXISTS idx_history_return ON borrowing_history(return_date);
CREATE INDEX IF NOT EXISTS idx_history_borrower ON borrowing_history(borrower_id);
"""

# Stored timestamp layout; text comparison in SQL relies on it
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

_RECORD_SELECT = """
SELECT h.id, h.checkout_date, h.return_date, h.returned_date, h.is_returned,
       b.id AS book_id, b.title, b.author, b.isbn,
       r.id AS borrower_id, r.name, r.email
FROM borrowing_history h
INNER JOIN books b ON b.id = h.book_id
INNER JOIN borrowers r ON r.id = h.borrower_id
"""


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode enabled."""
    path = str(db_path or DB_PATH)
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db_path: Path | str | None = None):
    """Context manager yielding a database connection."""
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Path | str | None = None) -> None:
    """Create all tables if they don't exist."""
    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    with get_db(path) as conn:
        conn.executescript(SCHEMA_SQL)


def to_db_timestamp(value: datetime | date | str | None) -> str | None:
    """Normalise a datetime, date or ISO string to the stored naive-UTC text form."""
    if value is None:
        return None
    return parse_date(value).strftime(TIMESTAMP_FORMAT)


def _row_to_record(row: sqlite3.Row) -> dict:
    """Flat joined row -> record with nested book and borrower."""
    return {
        "id": row["id"],
        "book": {
            "id": row["book_id"],
            "title": row["title"],
            "author": row["author"],
            "isbn": row["isbn"],
        },
        "borrower": {
            "id": row["borrower_id"],
            "name": row["name"],
            "email": row["email"],
        },
        "checkout_date": row["checkout_date"],
        "return_date": row["return_date"],
        "returned_date": row["returned_date"],
        "is_returned": bool(row["is_returned"]),
    }


def fetch_borrowing_records(conn: sqlite3.Connection, record_filter: RecordFilter) -> list[dict]:
    """Records whose filter date column falls in the range, newest first."""
    column = record_filter.date_column
    if column not in ("checkout_date", "return_date"):
        raise ValueError(f"Cannot filter on column: {column}")
    conditions = [f"h.{column} BETWEEN ? AND ?"]
    params: list = [
        to_db_timestamp(record_filter.date_range.start_date),
        to_db_timestamp(record_filter.date_range.end_date),
    ]
    if record_filter.borrower_id is not None:
        conditions.append("h.borrower_id = ?")
        params.append(record_filter.borrower_id)
    if record_filter.overdue_only:
        conditions.append("(h.returned_date IS NULL OR h.returned_date > h.return_date)")
    sql = f"{_RECORD_SELECT} WHERE {' AND '.join(conditions)} ORDER BY h.{column} DESC, h.id DESC"
    cursor = conn.execute(sql, params)
    return [_row_to_record(row) for row in cursor.fetchall()]


def fetch_all_records(conn: sqlite3.Connection, borrower_id: int | None = None) -> list[dict]:
    """Full borrowing history (optionally for one borrower), newest checkout first."""
    if borrower_id is None:
        cursor = conn.execute(f"{_RECORD_SELECT} ORDER BY h.checkout_date DESC, h.id DESC")
    else:
        cursor = conn.execute(
            f"{_RECORD_SELECT} WHERE h.borrower_id = ? ORDER BY h.checkout_date DESC, h.id DESC",
            (borrower_id,),
        )
    return [_row_to_record(row) for row in cursor.fetchall()]


def fetch_inventory(conn: sqlite3.Connection) -> list[dict]:
    cursor = conn.execute(
        """SELECT id, title, author, isbn, available_quantity, shelf_location
           FROM books ORDER BY title, id"""
    )
    return [dict(row) for row in cursor.fetchall()]


def count_library_totals(
    conn: sqlite3.Connection,
    borrower_id: int | None = None,
    now: datetime | None = None,
) -> dict:
    """Book/borrower totals plus active and overdue loan counts (loans scoped to borrower_id)."""
    now_str = to_db_timestamp(now or utc_now())
    total_books = conn.execute("SELECT COUNT(*) AS n FROM books").fetchone()["n"]
    total_borrowers = conn.execute("SELECT COUNT(*) AS n FROM borrowers").fetchone()["n"]
    scope = ""
    params: list = []
    if borrower_id is not None:
        scope = " AND borrower_id = ?"
        params.append(borrower_id)
    active = conn.execute(
        f"SELECT COUNT(*) AS n FROM borrowing_history WHERE returned_date IS NULL{scope}",
        params,
    ).fetchone()["n"]
    overdue = conn.execute(
        f"SELECT COUNT(*) AS n FROM borrowing_history WHERE returned_date IS NULL AND return_date < ?{scope}",
        [now_str] + params,
    ).fetchone()["n"]
    return {
        "total_books": total_books,
        "total_borrowers": total_borrowers,
        "active_borrowings": active,
        "overdue_books": overdue,
    }


def find_borrower_by_email(conn: sqlite3.Connection, email: str) -> dict | None:
    cursor = conn.execute(
        "SELECT id, name, email, is_admin FROM borrowers WHERE email = ?",
        (email.strip().lower(),),
    )
    row = cursor.fetchone()
    return dict(row) if row else None


def insert_book(conn: sqlite3.Connection, title: str, author: str, isbn: str,
                available_quantity: int = 1, shelf_location: str | None = None,
                description: str | None = None) -> int:
    cur = conn.execute(
        """INSERT INTO books (title, author, isbn, description, available_quantity, shelf_location)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (title, author, isbn, description, available_quantity, shelf_location),
    )
    return cur.lastrowid


def insert_borrower(conn: sqlite3.Connection, name: str, email: str, is_admin: bool = False) -> int:
    cur = conn.execute(
        "INSERT INTO borrowers (name, email, is_admin) VALUES (?, ?, ?)",
        (name, email.strip().lower(), 1 if is_admin else 0),
    )
    return cur.lastrowid


def insert_borrowing(conn: sqlite3.Connection, book_id: int, borrower_id: int,
                     checkout_date: datetime | date | str, return_date: datetime | date | str,
                     returned_date: datetime | date | str | None = None) -> int:
    """Record a loan; is_returned is derived from returned_date."""
    cur = conn.execute(
        """INSERT INTO borrowing_history
           (book_id, borrower_id, checkout_date, return_date, returned_date, is_returned)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (book_id, borrower_id, to_db_timestamp(checkout_date), to_db_timestamp(return_date),
         to_db_timestamp(returned_date), 0 if returned_date is None else 1),
    )
    return cur.lastrowid
