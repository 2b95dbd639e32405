import sys

from library_reporting.__main__ import main, seed_demo
from library_reporting.reporting import get_statistics


def test_seed_demo(tmp_path):
    db = tmp_path / "demo" / "library.db"
    counts = seed_demo(str(db))
    assert counts == {"books": 3, "borrowers": 3, "loans": 5}
    stats = get_statistics(db_path=db)
    assert stats["active_borrowings"] == 2
    assert stats["overdue_books"] == 1
    assert stats["analytics"]["most_borrowed_book"] in ("The Great Gatsby", "Dune")


def test_report_command_writes_file(db_path, tmp_path, monkeypatch, capsys):
    out_dir = tmp_path / "out"
    monkeypatch.setattr(sys, "argv", [
        "library_reporting", "report", "overdue", "--start", "2024-01-01", "--end", "2024-01-31",
        "--format", "csv", "--db", str(db_path), "--output-dir", str(out_dir),
    ])
    main()
    written = out_dir / "overdue-report-2024-01-01.csv"
    assert written.exists()
    assert written.read_text().count("\n") == 3
    assert "2 rows" in capsys.readouterr().out
