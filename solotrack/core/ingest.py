from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from solotrack.core.models import FlightRecord


# Logbook export layout
LOGBOOK_COLUMNS = [
    "Date",
    "From",
    "To",
    "Hobbs",
    "Tach",
    "Day Landings",
    "Night FS Landings",
    "Solo",
    "Dual",
    "XC",
    "Instrument",
    "CFI Number",
    "Remarks",
]

REQUIRED_COLUMNS = [
    "Date",
    "Hobbs",
    "Day Landings",
    "Night FS Landings",
    "Solo",
    "Dual",
    "XC",
    "Instrument",
]

FLAG_COLUMNS = ["Solo", "Dual", "XC", "Instrument"]
_TRUE_FLAGS = {"y", "yes", "true", "1", "x"}


@dataclass(frozen=True)
class IngestResult:
    df: pd.DataFrame
    flights: list[FlightRecord]
    issues: list[str]


def _empty(issues: list[str]) -> IngestResult:
    return IngestResult(df=pd.DataFrame(columns=LOGBOOK_COLUMNS), flights=[], issues=issues)


def _flag(s: pd.Series) -> pd.Series:
    return s.fillna("").astype(str).str.strip().str.lower().isin(_TRUE_FLAGS)


def frame_to_flights(df: pd.DataFrame) -> list[FlightRecord]:
    """Cleaned logbook frame -> FlightRecords (newest first, as the host store lists them)."""
    if df is None or df.empty:
        return []

    flights = [
        FlightRecord(
            date=row["Date"],
            duration_hours=float(row["Hobbs"]),
            day_landings=int(row["Day Landings"]),
            night_full_stop_landings=int(row["Night FS Landings"]),
            is_solo=bool(row["Solo"]),
            is_dual_received=bool(row["Dual"]),
            is_cross_country=bool(row["XC"]),
            is_simulated_instrument=bool(row["Instrument"]),
            route_from=str(row.get("From", "") or ""),
            route_to=str(row.get("To", "") or ""),
            remarks=str(row.get("Remarks", "") or ""),
        )
        for row in df.to_dict(orient="records")
    ]
    return sorted(flights, key=lambda f: f.date, reverse=True)


def load_logbook_csv(path: str | Path) -> IngestResult:
    """
    Load a logbook CSV (export layout) and validate basic schema.

    Expected columns:
    Date, Hobbs, Day Landings, Night FS Landings, Solo, Dual, XC, Instrument
    (From, To, Tach, CFI Number, Remarks optional)
    """
    path = Path(path)
    issues: list[str] = []

    if not path.exists():
        return _empty([f"File not found: {path}"])

    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        return _empty([f"Empty logbook file: {path}"])

    df.columns = [str(c).strip() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        issues.append(f"Missing required columns: {missing}")
        return _empty(issues)

    for c in LOGBOOK_COLUMNS:
        if c not in df.columns:
            df[c] = ""

    # Parse dates (calendar dates only)
    parsed = pd.to_datetime(df["Date"].str.strip(), errors="coerce")
    bad_dates = int(parsed.isna().sum())
    if bad_dates:
        issues.append(f"{bad_dates} rows have invalid date")
    df["Date"] = parsed.dt.date

    # Coerce numerics
    for col in ["Hobbs", "Tach"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    for col in ["Day Landings", "Night FS Landings"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    bad_nums = int(df[["Hobbs", "Day Landings", "Night FS Landings"]].isna().any(axis=1).sum())
    if bad_nums:
        issues.append(f"{bad_nums} rows have invalid numeric values in Hobbs/Day Landings/Night FS Landings")

    negative = int(((df["Hobbs"] < 0) | (df["Day Landings"] < 0) | (df["Night FS Landings"] < 0)).sum())
    if negative:
        issues.append(f"{negative} rows have negative hours or landings (clamped to 0)")

    for col in FLAG_COLUMNS:
        df[col] = _flag(df[col])

    for col in ["From", "To", "CFI Number", "Remarks"]:
        df[col] = df[col].astype(str).str.strip()

    # Drop rows missing essentials (strict for v1)
    df = df[parsed.notna()].dropna(subset=["Hobbs", "Day Landings", "Night FS Landings"]).copy()

    df["Hobbs"] = df["Hobbs"].clip(lower=0.0)
    df["Day Landings"] = df["Day Landings"].clip(lower=0).astype(int)
    df["Night FS Landings"] = df["Night FS Landings"].clip(lower=0).astype(int)

    df = df[LOGBOOK_COLUMNS].reset_index(drop=True)
    return IngestResult(df=df, flights=frame_to_flights(df), issues=issues)
