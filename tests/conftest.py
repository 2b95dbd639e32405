from datetime import datetime

import pytest

from library_reporting.db import get_db, init_db, insert_book, insert_borrower, insert_borrowing

# "Now" for every deterministic test: mid-March 2024, so last month is February (leap year)
NOW = datetime(2024, 3, 15, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def borrowing_records():
    """Two loans of Test Book 1 by John Doe (one still open) and one of Test Book 2 by Jane Smith."""
    return [
        {
            "book": {"id": 1, "title": "Test Book 1", "author": "Author 1", "isbn": "1111111111"},
            "borrower": {"id": 1, "name": "John Doe"},
            "checkout_date": "2024-01-01",
            "return_date": "2024-01-15",
            "returned_date": "2024-01-15",
            "is_returned": True,
        },
        {
            "book": {"id": 2, "title": "Test Book 2", "author": "Author 2", "isbn": "2222222222"},
            "borrower": {"id": 2, "name": "Jane Smith"},
            "checkout_date": "2024-01-02",
            "return_date": "2024-01-16",
            "returned_date": "2024-01-20",
            "is_returned": True,
        },
        {
            "book": {"id": 1, "title": "Test Book 1", "author": "Author 1", "isbn": "1111111111"},
            "borrower": {"id": 1, "name": "John Doe"},
            "checkout_date": "2024-01-05",
            "return_date": "2024-01-19",
            "returned_date": None,
            "is_returned": False,
        },
    ]


@pytest.fixture
def db_path(tmp_path):
    """SQLite database with two books, three borrowers and five loans (Jan-Feb 2024).

    Loans:
        1  Test Book 1 / John Doe    out 01-01 due 01-15 back 01-15 (on time)
        2  Test Book 2 / Jane Smith  out 01-02 due 01-16 back 01-20 (late)
        3  Test Book 1 / John Doe    out 01-05 due 01-19 still out
        4  Test Book 2 / John Doe    out 02-10 due 02-24 still out
        5  Test Book 1 / Jane Smith  out 02-20 due 03-05 back 03-01
    """
    path = tmp_path / "library.db"
    init_db(path)
    with get_db(path) as conn:
        book1 = insert_book(conn, "Test Book 1", "Author 1", "1111111111", 2, "A1-B2-C3")
        book2 = insert_book(conn, "Test Book 2", "Author 2", "2222222222", 0, "B4-A1-C2")
        insert_borrower(conn, "Admin User", "admin@library.local", is_admin=True)
        john = insert_borrower(conn, "John Doe", "john@example.com")
        jane = insert_borrower(conn, "Jane Smith", "jane@example.com")
        insert_borrowing(conn, book1, john, datetime(2024, 1, 1), datetime(2024, 1, 15), datetime(2024, 1, 15))
        insert_borrowing(conn, book2, jane, datetime(2024, 1, 2), datetime(2024, 1, 16), datetime(2024, 1, 20))
        insert_borrowing(conn, book1, john, datetime(2024, 1, 5), datetime(2024, 1, 19))
        insert_borrowing(conn, book2, john, datetime(2024, 2, 10), datetime(2024, 2, 24))
        insert_borrowing(conn, book1, jane, datetime(2024, 2, 20), datetime(2024, 3, 5), datetime(2024, 3, 1))
    return path


@pytest.fixture
def john_id(db_path):
    with get_db(db_path) as conn:
        return conn.execute("SELECT id FROM borrowers WHERE email = 'john@example.com'").fetchone()["id"]
