from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore


# ----------------------------
# Primary config object
# ----------------------------

@dataclass(frozen=True)
class SoloTrackConfig:
    """
    Single, flattened config object used by the CLI/runtime.

    Supports config.sample.toml style:
      [solotrack]
      input, prefs, out, json_out, stage, as_of

    Also supports structured style:
      [meta], [report]
    """
    schema_version: str = "1.0"

    # IO
    input: str = "data/logbook.csv"
    prefs: str = "outputs/notification_prefs.json"
    out: str = ""
    json_out: str = "outputs/solotrack_status.json"

    # evaluation knobs
    stage: str = "pre_solo"
    as_of: str | None = None

    # report knobs
    show_requirements: bool = True


# ----------------------------
# Helpers
# ----------------------------

def _as_dict(x: Any) -> dict[str, Any]:
    return x if isinstance(x, dict) else {}


def _get(d: dict[str, Any], key: str, default: Any) -> Any:
    return d.get(key, default) if isinstance(d, dict) else default


def _coerce_str(x: Any, default: str) -> str:
    if x is None:
        return default
    s = str(x)
    return s if s.strip() else default


def _coerce_opt_str(x: Any) -> str | None:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


def _coerce_bool(x: Any, default: bool) -> bool:
    if isinstance(x, bool):
        return x
    if isinstance(x, str):
        s = x.strip().lower()
        if s in ("true", "yes", "on", "1"):
            return True
        if s in ("false", "no", "off", "0"):
            return False
    return default


# ----------------------------
# Load + merge
# ----------------------------

def load_config(path: str | Path | None) -> SoloTrackConfig:
    """
    Load TOML config. If missing/None, returns safe defaults.
    Never raises for missing file (config is optional).
    """
    if not path:
        return SoloTrackConfig()

    p = Path(path)
    if not p.exists():
        return SoloTrackConfig()

    data = tomllib.loads(p.read_text(encoding="utf-8"))

    # Preferred simple table
    sol = _as_dict(data.get("solotrack", {}))

    # Optional structured tables
    meta = _as_dict(data.get("meta", {}))
    report = _as_dict(data.get("report", {}))

    d = SoloTrackConfig()
    return SoloTrackConfig(
        schema_version=_coerce_str(_get(meta, "schema_version", d.schema_version), d.schema_version),
        input=_coerce_str(_get(sol, "input", d.input), d.input),
        prefs=_coerce_str(_get(sol, "prefs", d.prefs), d.prefs),
        out=_coerce_str(_get(sol, "out", _get(report, "pdf_out", d.out)), d.out),
        json_out=_coerce_str(_get(sol, "json_out", _get(report, "json_out", d.json_out)), d.json_out),
        stage=_coerce_str(_get(sol, "stage", d.stage), d.stage),
        as_of=_coerce_opt_str(_get(sol, "as_of", None)),
        show_requirements=_coerce_bool(
            _get(sol, "show_requirements", _get(report, "show_requirements", d.show_requirements)),
            d.show_requirements,
        ),
    )


def merge_config(cfg: SoloTrackConfig, args: Any) -> SoloTrackConfig:
    """
    Merge CLI args over file config.
    Accepts an argparse Namespace or a plain dict of explicitly-set values.
    Only applies fields if the arg exists AND is not None/empty.
    """
    if isinstance(args, dict):
        lookup = args
    else:
        lookup = vars(args) if args is not None else {}

    def pick_str(name: str, cur: str) -> str:
        v = lookup.get(name)
        if v is not None and str(v).strip():
            return str(v).strip()
        return cur

    def pick_opt_str(name: str, cur: str | None) -> str | None:
        v = lookup.get(name)
        if v is None:
            return cur
        s = str(v).strip()
        return s or cur

    def pick_bool(name: str, cur: bool) -> bool:
        v = lookup.get(name)
        return cur if v is None else _coerce_bool(v, cur)

    return SoloTrackConfig(
        schema_version=cfg.schema_version,
        input=pick_str("input", cfg.input),
        prefs=pick_str("prefs", cfg.prefs),
        out=pick_str("out", cfg.out),
        json_out=pick_str("json_out", cfg.json_out),
        stage=pick_str("stage", cfg.stage),
        as_of=pick_opt_str("as_of", cfg.as_of),
        show_requirements=pick_bool("show_requirements", cfg.show_requirements),
    )
