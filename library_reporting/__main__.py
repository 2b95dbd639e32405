"""CLI entry point: python -m library_reporting <command> [options]"""

import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path

from .config import LOG_LEVEL, REPORTS_DIR


def _write_report(report, output_dir: str | None) -> Path:
    out_dir = Path(output_dir) if output_dir else REPORTS_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / report.filename
    path.write_bytes(report.content)
    return path


def seed_demo(db_path: str | None = None) -> dict:
    """Create the schema and a small set of books, borrowers and loans around today."""
    from .db import get_db, init_db, insert_book, insert_borrower, insert_borrowing
    from .formatters import utc_now

    init_db(db_path)
    now = utc_now().replace(microsecond=0)
    with get_db(db_path) as conn:
        books = [
            insert_book(conn, "The Great Gatsby", "F. Scott Fitzgerald", "978-0-7432-7356-5", 3, "A1-B2-C3"),
            insert_book(conn, "Dune", "Frank Herbert", "978-0-4410-1359-3", 0, "B4-A1-C2"),
            insert_book(conn, "Middlemarch", "George Eliot", "978-0-1414-3954-9", 2, "C1-C1-A3"),
        ]
        admin = insert_borrower(conn, "Library Admin", "admin@library.local", is_admin=True)
        readers = [
            insert_borrower(conn, "John Doe", "john@example.com"),
            insert_borrower(conn, "Jane Smith", "jane@example.com"),
        ]
        loans = [
            (books[0], readers[0], 45, 31, 30),
            (books[1], readers[0], 40, 26, None),
            (books[0], readers[1], 35, 21, 14),
            (books[2], readers[1], 10, -4, None),
            (books[1], admin, 50, 36, 33),
        ]
        for book_id, borrower_id, out_ago, due_ago, back_ago in loans:
            insert_borrowing(
                conn, book_id, borrower_id,
                now - timedelta(days=out_ago),
                now - timedelta(days=due_ago),
                None if back_ago is None else now - timedelta(days=back_ago),
            )
    return {"books": len(books), "borrowers": len(readers) + 1, "loans": len(loans)}


def main():
    parser = argparse.ArgumentParser(
        prog="library_reporting",
        description="Library borrowing reports and analytics",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # init_db
    p_init = sub.add_parser("init_db", help="Create the database schema")
    p_init.add_argument("--db", help="Database path override")

    # seed_demo
    p_seed = sub.add_parser("seed_demo", help="Initialise DB and load demo books, borrowers and loans")
    p_seed.add_argument("--db", help="Database path override")

    # report
    p_rep = sub.add_parser("report", help="Generate a report file")
    p_rep.add_argument("report_type", help="borrowing, overdue, inventory, last_month_borrowing, last_month_overdue")
    p_rep.add_argument("--start", help="Start date, e.g. 2024-01-01")
    p_rep.add_argument("--end", help="End date, e.g. 2024-01-31")
    p_rep.add_argument("--format", default="xlsx", help="xlsx (default) or csv")
    p_rep.add_argument("--borrower-id", type=int, help="Only this borrower's records")
    p_rep.add_argument("--db", help="Database path override")
    p_rep.add_argument("--output-dir", help="Output directory override")

    # export_last_month
    p_last = sub.add_parser("export_last_month", help="Export last month's borrowing or overdue loans")
    p_last.add_argument("kind", choices=["borrowing", "overdue"])
    p_last.add_argument("--format", default="xlsx", help="xlsx (default) or csv")
    p_last.add_argument("--db", help="Database path override")
    p_last.add_argument("--output-dir", help="Output directory override")

    # statistics
    p_stats = sub.add_parser("statistics", help="Print library statistics as JSON")
    p_stats.add_argument("--borrower-id", type=int, help="Only this borrower's records")
    p_stats.add_argument("--db", help="Database path override")

    # analytics
    p_an = sub.add_parser("analytics", help="Print analytics for a period as JSON")
    p_an.add_argument("start", help="Start date, e.g. 2024-01-01")
    p_an.add_argument("end", help="End date, e.g. 2024-01-31")
    p_an.add_argument("--borrower-id", type=int, help="Only this borrower's records")
    p_an.add_argument("--db", help="Database path override")

    args = parser.parse_args()
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    from .errors import ReportValidationError

    try:
        if args.command == "init_db":
            from .db import init_db
            init_db(args.db)
            print("Database initialised.")

        elif args.command == "seed_demo":
            counts = seed_demo(args.db)
            print(f"Seeded {counts['books']} books, {counts['borrowers']} borrowers, {counts['loans']} loans.")

        elif args.command == "report":
            from .reporting import generate_report
            report = generate_report(
                start_date=args.start,
                end_date=args.end,
                report_type=args.report_type,
                fmt=args.format,
                borrower_id=args.borrower_id,
                db_path=args.db,
            )
            path = _write_report(report, args.output_dir)
            print(f"\nDone. {report.row_count} rows -> {path}")

        elif args.command == "export_last_month":
            from .reporting import export_last_month_borrowing, export_last_month_overdue
            export = export_last_month_overdue if args.kind == "overdue" else export_last_month_borrowing
            report = export(args.format, db_path=args.db)
            path = _write_report(report, args.output_dir)
            print(f"\nDone. {report.row_count} rows -> {path}")

        elif args.command == "statistics":
            from .reporting import get_statistics
            stats = get_statistics(borrower_id=args.borrower_id, db_path=args.db)
            print(json.dumps(stats, indent=2))

        elif args.command == "analytics":
            from .reporting import get_period_analytics
            result = get_period_analytics(args.start, args.end, borrower_id=args.borrower_id, db_path=args.db)
            print(json.dumps(result, indent=2))

    except ReportValidationError as e:
        print(f"Invalid request: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
