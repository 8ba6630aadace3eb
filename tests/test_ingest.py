from __future__ import annotations

from datetime import date
from pathlib import Path

from solotrack.core.ingest import LOGBOOK_COLUMNS, load_logbook_csv

HEADER = ",".join(LOGBOOK_COLUMNS)


def _write(path: Path, *rows: str) -> Path:
    path.write_text("\n".join([HEADER, *rows]) + "\n", encoding="utf-8")
    return path


def test_load_logbook_parses_flags_and_sorts_newest_first(tmp_path: Path) -> None:
    p = _write(
        tmp_path / "logbook.csv",
        "2026-01-10,KPAO,KSQL,1.5,1.4,3,0,N,Y,N,N,1234567,First lesson",
        "2026-01-12,kpao,kmry,2.1,2.0,1,2,Y,N,Y,N,,Solo XC",
    )

    res = load_logbook_csv(p)

    assert res.issues == []
    assert len(res.flights) == 2
    newest, oldest = res.flights
    assert newest.date == date(2026, 1, 12)
    assert newest.is_solo and newest.is_cross_country and not newest.is_dual_received
    assert newest.night_full_stop_landings == 2
    assert newest.formatted_route == "KPAO → KMRY"
    assert oldest.is_dual_received
    assert oldest.duration_hours == 1.5
    assert oldest.remarks == "First lesson"


def test_bad_rows_are_dropped_and_reported(tmp_path: Path) -> None:
    p = _write(
        tmp_path / "logbook.csv",
        "2026-01-10,KPAO,KPAO,1.0,1.0,3,0,N,Y,N,N,,ok",
        "not-a-date,KPAO,KPAO,1.0,1.0,3,0,N,Y,N,N,,bad date",
        "2026-01-11,KPAO,KPAO,abc,1.0,3,0,N,Y,N,N,,bad hobbs",
        "2026-01-12,KPAO,KPAO,-1.0,1.0,2,0,Y,N,N,N,,negative",
    )

    res = load_logbook_csv(p)

    assert len(res.flights) == 2
    assert any("invalid date" in s for s in res.issues)
    assert any("invalid numeric" in s for s in res.issues)
    assert any("negative" in s for s in res.issues)
    assert res.flights[0].duration_hours == 0.0


def test_missing_columns_returns_empty_with_issue(tmp_path: Path) -> None:
    p = tmp_path / "logbook.csv"
    p.write_text("Date,Hobbs\n2026-01-10,1.0\n", encoding="utf-8")

    res = load_logbook_csv(p)

    assert res.df.empty
    assert res.flights == []
    assert res.issues and "Missing required columns" in res.issues[0]


def test_header_only_logbook_is_empty_without_issues(tmp_path: Path) -> None:
    res = load_logbook_csv(_write(tmp_path / "logbook.csv"))
    assert res.flights == []
    assert res.issues == []


def test_missing_file(tmp_path: Path) -> None:
    res = load_logbook_csv(tmp_path / "nope.csv")
    assert res.flights == []
    assert "File not found" in res.issues[0]
