from __future__ import annotations

import argparse
import csv
import math
import random
from dataclasses import dataclass, replace
from datetime import date, timedelta
from pathlib import Path

from solotrack.core.ingest import LOGBOOK_COLUMNS
from solotrack.core.models import FlightRecord
from solotrack.core.requirements import compute_requirements

# ----------------------------
# Configuration / Profile Catalog
# ----------------------------

AIRPORTS = ["KPAO", "KSQL", "KHWD", "KLVK", "KOAK", "KSJC", "KRHV", "KWVI", "KMRY", "KSNS"]


@dataclass(frozen=True)
class FlightMix:
    # probabilities per flight
    p_solo: float
    p_xc_given_solo: float
    p_night: float
    p_instrument_given_dual: float
    # hobbs hours range
    hobbs_min: float
    hobbs_max: float
    # day landings range
    landings_min: int
    landings_max: int


PROFILE_PRESETS: dict[str, FlightMix] = {
    "pre_solo": FlightMix(0.00, 0.00, 0.05, 0.15, 1.0, 1.6, 2, 8),
    "post_solo": FlightMix(0.45, 0.30, 0.10, 0.25, 1.0, 2.4, 1, 6),
    "checkride_prep": FlightMix(0.50, 0.40, 0.15, 0.30, 1.1, 2.8, 1, 5),
}

DEFAULT_FLIGHTS = {"pre_solo": 12, "post_solo": 30, "checkride_prep": 45}

TOP_UP_ORDER = [
    "61.109(a)(1)",
    "61.109(a)(2)",
    "61.109(a)(2)(i)",
    "61.109(a)(2)(ii)",
    "61.109(a)(3)",
    "61.109(a)",
]


# ----------------------------
# Helpers
# ----------------------------

def parse_date(s: str) -> date:
    return date.fromisoformat(s)


def _round_tenth(x: float) -> float:
    return math.floor(x * 10 + 0.5) / 10.0


def _route(rng: random.Random, xc: bool) -> tuple[str, str]:
    home = AIRPORTS[0]
    if not xc:
        return home, home
    return home, rng.choice(AIRPORTS[1:])


def make_flight(rng: random.Random, day: date, mix: FlightMix) -> FlightRecord:
    solo = rng.random() < mix.p_solo
    dual = not solo
    xc = solo and rng.random() < mix.p_xc_given_solo
    instrument = dual and rng.random() < mix.p_instrument_given_dual
    night = rng.random() < mix.p_night

    hobbs = _round_tenth(rng.uniform(mix.hobbs_min, mix.hobbs_max))
    day_landings = rng.randint(mix.landings_min, mix.landings_max)
    night_landings = rng.randint(1, 3) if night else 0
    if night:
        day_landings = max(day_landings - night_landings, 0)

    src, dst = _route(rng, xc)
    return FlightRecord(
        date=day,
        duration_hours=hobbs,
        day_landings=day_landings,
        night_full_stop_landings=night_landings,
        is_solo=solo,
        is_dual_received=dual,
        is_cross_country=xc,
        is_simulated_instrument=instrument,
        route_from=src,
        route_to=dst,
        remarks="",
    )


def top_up_requirements(flights: list[FlightRecord], first_day: date) -> list[FlightRecord]:
    """
    Append catch-up flights (dated first_day, oldest in the logbook) until every
    PPL requirement is met. Keeps checkride-prep logbooks deterministic.
    """
    out = list(flights)
    templates = {
        "61.109(a)(1)": FlightRecord(first_day, is_dual_received=True, day_landings=3, remarks="Dual catch-up"),
        "61.109(a)(2)": FlightRecord(first_day, is_solo=True, day_landings=3, remarks="Solo catch-up"),
        "61.109(a)(2)(i)": FlightRecord(
            first_day, is_solo=True, is_cross_country=True, day_landings=2,
            route_from=AIRPORTS[0], route_to=AIRPORTS[-1], remarks="Solo XC catch-up",
        ),
        "61.109(a)(2)(ii)": FlightRecord(
            first_day, is_dual_received=True, night_full_stop_landings=3, remarks="Night catch-up",
        ),
        "61.109(a)(3)": FlightRecord(
            first_day, is_dual_received=True, is_simulated_instrument=True, day_landings=1, remarks="Hood work",
        ),
        "61.109(a)": FlightRecord(first_day, is_dual_received=True, day_landings=2, remarks="Total time catch-up"),
    }

    # total time last: the category top-ups count toward it
    for key in TOP_UP_ORDER:
        current = next(r for r in compute_requirements(out) if r.key == key)
        if current.is_met:
            continue
        hours = _round_tenth(current.remaining_hours + 0.05)
        out.append(replace(templates[key], duration_hours=max(hours, 0.1)))

    return out


# ----------------------------
# Core generation
# ----------------------------

def generate_flights(
    *,
    end: date,
    days: int,
    flights: int,
    seed: int | None,
    profile: str,
    stall_days: int = 0,
) -> list[FlightRecord]:
    """
    Synthetic logbook: `flights` entries spread over the `days` before `end`,
    with the newest flight `stall_days` before `end`.
    """
    if profile not in PROFILE_PRESETS:
        raise ValueError(f"Unknown profile: {profile}")
    if days <= 0 or flights < 0 or stall_days < 0:
        raise ValueError("days must be > 0; flights and stall_days must be >= 0")

    rng = random.Random(seed)
    mix = PROFILE_PRESETS[profile]

    last_day = end - timedelta(days=stall_days)
    first_day = end - timedelta(days=max(days, stall_days))
    span = max((last_day - first_day).days, 0)

    offsets = sorted(rng.randint(0, span) for _ in range(flights))
    if offsets:
        # pin the newest flight to last_day so stall_days is exact
        offsets[-1] = span

    out = [make_flight(rng, first_day + timedelta(days=o), mix) for o in offsets]

    if profile == "checkride_prep":
        out = top_up_requirements(out, first_day)

    return sorted(out, key=lambda f: f.date)


def write_logbook_csv(out_path: Path, flights: list[FlightRecord]) -> int:
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(LOGBOOK_COLUMNS)
        for fl in sorted(flights, key=lambda x: x.date):
            w.writerow([
                fl.date.isoformat(),
                fl.route_from,
                fl.route_to,
                f"{fl.duration_hours:.1f}",
                f"{fl.duration_hours:.1f}",
                fl.day_landings,
                fl.night_full_stop_landings,
                "Y" if fl.is_solo else "N",
                "Y" if fl.is_dual_received else "N",
                "Y" if fl.is_cross_country else "N",
                "Y" if fl.is_simulated_instrument else "N",
                "",
                fl.remarks,
            ])
    return len(flights)


def generate_csv(
    out_path: Path,
    end: date,
    days: int,
    flights: int | None,
    seed: int | None,
    profile: str,
    stall_days: int = 0,
    print_summary: bool = False,
) -> list[FlightRecord]:
    n = DEFAULT_FLIGHTS.get(profile, 20) if flights is None else flights
    records = generate_flights(end=end, days=days, flights=n, seed=seed, profile=profile, stall_days=stall_days)
    rows = write_logbook_csv(out_path, records)

    if print_summary:
        hours = sum(f.duration_hours for f in records)
        print(f"Generated {out_path} with {rows} flights ({hours:.1f} h)")
        print(f"Profile: {profile} | Window: {days}d ending {end} | Stall: {stall_days}d | Seed: {seed}")

    return records


# ----------------------------
# CLI
# ----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="generate_flights.py",
        description="Generate a synthetic logbook CSV for SoloTrack demo/testing.",
    )

    p.add_argument("--out", default="data/logbook.csv",
                   help="Output CSV path (default: data/logbook.csv)")
    p.add_argument("--end", default=date.today().isoformat(),
                   help="Reference date the logbook ends at (ISO format, default: today)")
    p.add_argument("--days", type=int, default=180,
                   help="Number of days the logbook spans")
    p.add_argument("--flights", type=int, default=None,
                   help="Number of flights (default depends on profile)")
    p.add_argument("--seed", type=int, default=None,
                   help="Random seed for reproducible output")
    p.add_argument("--profile", choices=sorted(PROFILE_PRESETS), default="post_solo",
                   help="Training stage profile preset")
    p.add_argument("--stall-days", type=int, default=0,
                   help="Days between the newest flight and --end (momentum stall)")
    p.add_argument("--print-summary", action="store_true",
                   help="Print generation summary to console")

    return p


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.days <= 0:
        raise SystemExit("--days must be > 0")
    if args.flights is not None and args.flights < 0:
        raise SystemExit("--flights must be >= 0")
    if args.stall_days < 0:
        raise SystemExit("--stall-days must be >= 0")

    generate_csv(
        out_path=Path(args.out),
        end=parse_date(args.end),
        days=args.days,
        flights=args.flights,
        seed=args.seed,
        profile=args.profile,
        stall_days=args.stall_days,
        print_summary=args.print_summary,
    )


if __name__ == "__main__":
    main()
