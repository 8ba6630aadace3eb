from __future__ import annotations

import argparse
import logging
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

from solotrack.core.clock import naive_local
from solotrack.core.config import load_config, merge_config
from solotrack.core.contract import SOLOTRACK_DECISION_VERSION
from solotrack.core.ingest import load_logbook_csv
from solotrack.core.models import TrainingStage
from solotrack.core.pipeline import CollectingDispatcher, NotificationPipeline
from solotrack.core.preferences import InMemoryPreferenceStore, JsonPreferenceStore, NotificationPreferences
from solotrack.core.status import logbook_status, status_verdict
from solotrack.report.json_report import write_json_report
from solotrack.report.pdf_report import write_pdf_report
from solotrack.schema_constants import SCHEMA_VERSION

try:
    SOLOTRACK_PACKAGE_VERSION = version("solotrack")
except PackageNotFoundError:
    SOLOTRACK_PACKAGE_VERSION = "dev"

logger = logging.getLogger(__name__)

OPT_IN_ATTRS = {
    "currency": "currency_alerts_enabled",
    "milestone": "milestone_alerts_enabled",
    "momentum": "momentum_alerts_enabled",
}


def _console_safe(s: str) -> str:
    """
    Windows PowerShell can choke on certain Unicode chars (e.g., arrows).
    Keep console output ASCII-safe while leaving PDF/JSON output untouched.
    """
    return (
        str(s)
        .replace("→", "->")
        .replace("—", "-")
        .replace("•", "-")
    )


def _require_existing_file(path: Path, label: str) -> None:
    if not path.exists():
        raise FileNotFoundError(f"{label} not found: {path}")
    if path.is_dir():
        raise IsADirectoryError(f"{label} is a directory, expected a file: {path}")


def _parse_as_of(value: str | None) -> datetime:
    if not value:
        return datetime.now()
    return naive_local(datetime.fromisoformat(value.strip()))


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="solotrack", description="SoloTrack — currency status & training notifications")

    p.add_argument("--input", default=None, help="Path to logbook CSV (defaults from config or built-in)")
    p.add_argument("--prefs", default=None, help="Notification preferences JSON (created on first run)")
    p.add_argument("--config", default=None, help="Path to config TOML (optional)")

    p.add_argument("--stage", default=None, choices=[s.value for s in TrainingStage], help="Training stage persona")
    p.add_argument("--as-of", default=None, help="Reference time (ISO date or datetime). Default: now")

    p.add_argument("--out", default=None, help="Optional PDF status report path")
    p.add_argument(
        "--json-out",
        "--json",
        dest="json_out",
        default=None,
        help="JSON status report path",
    )

    p.add_argument("--dry-run", action="store_true", help="Evaluate notifications without recording deliveries")
    p.add_argument("--reset-prefs", action="store_true", help="Clear stored cooldowns, counters and markers first")
    p.add_argument("--opt-out", action="append", default=[], choices=sorted(OPT_IN_ATTRS),
                   help="Disable a notification category (persisted unless --dry-run)")
    p.add_argument("--opt-in", action="append", default=[], choices=sorted(OPT_IN_ATTRS),
                   help="Re-enable a notification category (persisted unless --dry-run)")
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    file_cfg = load_config(args.config)

    # Only explicitly-provided CLI values override the file config
    cli_explicit: dict[str, Any] = {
        k: v
        for k, v in {
            "input": args.input,
            "prefs": args.prefs,
            "out": args.out,
            "json_out": args.json_out,
            "stage": args.stage,
            "as_of": args.as_of,
        }.items()
        if v is not None
    }
    cfg = merge_config(file_cfg, cli_explicit)

    data_path = Path(cfg.input)
    prefs_path = Path(cfg.prefs)
    json_out_path = Path(cfg.json_out) if cfg.json_out else None
    out_pdf = Path(cfg.out) if cfg.out else None
    stage = TrainingStage.parse(cfg.stage)

    try:
        now = _parse_as_of(cfg.as_of)
    except ValueError:
        print(f"ERROR: invalid --as-of value: {cfg.as_of}")
        return 2

    # ---- Fail fast: missing input should be explicit ----
    try:
        _require_existing_file(data_path, "Logbook CSV")
    except (FileNotFoundError, IsADirectoryError) as e:
        print(f"ERROR: {e}")
        return 2

    ingest = load_logbook_csv(data_path)
    logger.debug("Loaded %d flights from %s (%d issues)", len(ingest.flights), data_path, len(ingest.issues))
    if ingest.df.empty and ingest.issues:
        print(f"ERROR: logbook could not be parsed: {data_path}")
        print("Ingest issues:")
        for msg in ingest.issues:
            print(f" - {_console_safe(str(msg))}")
        return 1

    # ---- Preferences ----
    store = JsonPreferenceStore(prefs_path)
    if args.dry_run:
        logger.info("Dry run: notification state will not be persisted to %s", prefs_path)
        prefs = NotificationPreferences(InMemoryPreferenceStore(store.snapshot()))
    else:
        prefs = NotificationPreferences(store)

    if args.reset_prefs:
        prefs.reset()
    for name in args.opt_out:
        setattr(prefs, OPT_IN_ATTRS[name], False)
    for name in args.opt_in:
        setattr(prefs, OPT_IN_ATTRS[name], True)

    # ---- Evaluate ----
    status = logbook_status(ingest.flights, now)

    dispatcher = CollectingDispatcher()
    pipeline = NotificationPipeline(prefs, dispatcher)
    result = pipeline.run(ingest.flights, stage, now)

    generated_at = datetime.now().strftime("%Y-%m-%d %H:%M")
    run_config = {
        "config": str(args.config or ""),
        "schema": SCHEMA_VERSION,
        "stage": stage.value,
        "as_of": now.isoformat(timespec="minutes"),
        "dry_run": "on" if args.dry_run else "",
        "version": SOLOTRACK_DECISION_VERSION,
        "package": SOLOTRACK_PACKAGE_VERSION,
    }

    if json_out_path is not None:
        write_json_report(
            json_out_path,
            generated_at=generated_at,
            status=status,
            stage=stage.value,
            result=result,
            notes=ingest.issues,
            run_config=run_config,
        )

    if out_pdf is not None:
        write_pdf_report(
            out_path=out_pdf,
            status=status,
            stage_title=stage.display_title,
            result=result,
            generated_at=generated_at,
            notes=ingest.issues,
            run_config=run_config,
            show_requirements=cfg.show_requirements,
        )

    # Prints only at main
    print(f"Logbook:        {data_path.resolve()} ({status.flight_count} flights, {status.total_hours:.1f} h)")
    print(f"Day currency:   {_console_safe(status.day.label)}")
    print(f"Night currency: {_console_safe(status.night.label)}")
    print(f"Verdict:        {_console_safe(status_verdict(status))}")
    print(f"Requirements:   {status.requirements_met}/{len(status.requirements)} met")

    if dispatcher.deliveries:
        print("Notifications:" + (" (dry run, not recorded)" if args.dry_run else ""))
        for d in dispatcher.deliveries:
            print(f" - [{d.category}] {_console_safe(d.title)}: {_console_safe(d.body)}")
    else:
        print("Notifications:  none")

    if json_out_path is not None:
        print(f"JSON saved:     {json_out_path.resolve()}")
    if out_pdf is not None:
        print(f"Report saved:   {out_pdf.resolve()}")
    if not args.dry_run and prefs_path.exists():
        print(f"Prefs saved:    {prefs_path.resolve()}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
