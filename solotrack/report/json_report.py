from __future__ import annotations

import json
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from solotrack.core.currency import CurrencyState, Expired, expires_on, state_name
from solotrack.core.events import ScoredEvent, event_payload
from solotrack.core.pipeline import PipelineResult
from solotrack.core.status import LogbookStatus, status_verdict


def _json_safe(x: Any) -> Any:
    """
    Convert values into strict JSON-safe Python types.

    Guarantees:
    - No NaN / Infinity (converted to None)
    - pandas/numpy NA -> None
    - numpy scalars -> python primitives
    - dates -> ISO strings
    - Recurses through dict/list/tuple
    """
    if isinstance(x, dict):
        return {str(k): _json_safe(v) for k, v in x.items()}

    if isinstance(x, (list, tuple, set)):
        return [_json_safe(v) for v in x]

    # Timestamps / dates (before NA check; pd.Timestamp is a datetime)
    if isinstance(x, (datetime, date)):
        return x.isoformat()

    try:
        if pd.isna(x):
            return None
    except (TypeError, ValueError):
        pass

    if isinstance(x, float):
        if math.isnan(x) or math.isinf(x):
            return None
        return x

    if isinstance(x, (str, int, bool)) or x is None:
        return x

    # Numpy scalars (float/int) -> python primitives
    if hasattr(x, "item") and callable(x.item):
        return _json_safe(x.item())

    # Fallback: stringify unknown types
    return str(x)


def currency_record(state: CurrencyState, as_of: date) -> dict[str, Any]:
    days = state.days_since if isinstance(state, Expired) else state.days_remaining
    return {
        "state": state_name(state),
        "days": days,
        "is_legal": state.is_legal,
        "label": state.label,
        "expires_on": expires_on(state, as_of),
    }


def _scored_record(s: ScoredEvent) -> dict[str, Any]:
    return {
        "category": s.category,
        "score": s.score,
        "title": s.title,
        "body": s.body,
        "payload": event_payload(s.event),
    }


def build_report_payload(
    *,
    generated_at: str | None,
    status: LogbookStatus,
    stage: str,
    result: PipelineResult | None,
    notes: list[str] | None,
    run_config: dict[str, str] | None,
) -> dict[str, Any]:
    decision_version = run_config.get("version") if run_config else None
    schema_version = run_config.get("schema") if run_config else None

    result = result or PipelineResult()

    payload: dict[str, Any] = {
        "meta": {
            "generated_at": generated_at,
            "as_of": status.as_of,
            "decision_version": decision_version,
            "schema_version": schema_version,
        },
        "logbook": {
            "stage": stage,
            "flight_count": status.flight_count,
            "total_hours": status.total_hours,
            "last_flight": status.last_flight,
            "verdict": status_verdict(status),
        },
        "currency": {
            "day": currency_record(status.day, status.as_of),
            "night": currency_record(status.night, status.as_of),
        },
        "requirements": [
            {
                "key": r.key,
                "title": r.title,
                "goal_hours": r.goal_hours,
                "logged_hours": r.logged_hours,
                "remaining_hours": r.remaining_hours,
                "percent_complete": r.percent_complete,
                "is_met": r.is_met,
            }
            for r in status.requirements
        ],
        "notifications": {
            "detected": [{"category": e.category, "payload": event_payload(e)} for e in result.detected],
            "delivered": [_scored_record(s) for s in result.delivered],
            "blocked": [{**_scored_record(b.scored), "gate": b.gate} for b in result.blocked],
        },
        "notes": notes or [],
    }
    return _json_safe(payload)


def write_json_report(
    out_path: str | Path,
    *,
    generated_at: str | None,
    status: LogbookStatus,
    stage: str,
    result: PipelineResult | None,
    notes: list[str] | None,
    run_config: dict[str, str] | None,
) -> Path:
    """
    Writes the canonical SoloTrack status JSON.

    IMPORTANT:
    - `meta` must remain schema-stable and NOT include extra keys.
    """
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)

    payload = build_report_payload(
        generated_at=generated_at,
        status=status,
        stage=stage,
        result=result,
        notes=notes,
        run_config=run_config,
    )

    # STRICT JSON, no NaN allowed
    p.write_text(
        json.dumps(payload, indent=2, sort_keys=False, allow_nan=False, ensure_ascii=False),
        encoding="utf-8",
    )
    return p
