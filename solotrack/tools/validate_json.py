from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import importlib.resources as resources

import jsonschema

from solotrack.core.contract import DAILY_CAP
from solotrack.core.requirements import REQUIREMENT_CATALOG
from solotrack.schema_constants import (
    SCHEMA_VERSION,
    SCHEMA_RESOURCE_PACKAGE,
    SCHEMA_RESOURCE_NAME,
)

EXPECTED_SCHEMA_VERSION = SCHEMA_VERSION


class StrictJsonError(ValueError):
    """Report is not strict JSON (syntax error, NaN/Infinity, non-object top level)."""


class SchemaVersionMismatch(ValueError):
    """meta.schema_version is missing or differs from the version this build writes."""


class ReportConsistencyError(ValueError):
    """Schema-valid report whose fields contradict each other."""


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    schema_version: str
    delivered: int = 0
    blocked: int = 0


def _forbid_constant(name: str) -> Any:
    raise StrictJsonError(f"Forbidden JSON constant encountered: {name}")


def _load_schema_text() -> str:
    """Bundled schema text, read through package resources."""
    return resources.files(SCHEMA_RESOURCE_PACKAGE).joinpath(SCHEMA_RESOURCE_NAME).read_text(
        encoding="utf-8"
    )


def _loads_object(text: str, what: str) -> dict[str, Any]:
    try:
        obj = json.loads(text, parse_constant=_forbid_constant)
    except json.JSONDecodeError as e:
        raise StrictJsonError(f"{what} is not valid JSON: {e.msg} (line {e.lineno}, col {e.colno})") from e
    if not isinstance(obj, dict):
        raise StrictJsonError(f"{what} must be a JSON object at the top level.")
    return obj


def _schema_version_of(report: dict[str, Any]) -> str:
    meta = report.get("meta")
    version = meta.get("schema_version") if isinstance(meta, dict) else None
    if not isinstance(version, str) or not version.strip():
        raise SchemaVersionMismatch("Report has no usable meta.schema_version.")
    return version.strip()


def _check_schema(report: dict[str, Any], schema: dict[str, Any]) -> None:
    # report every violation at once, ordered by location
    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(report), key=lambda e: list(map(str, e.absolute_path)))
    if errors:
        lines = [f"{'/'.join(map(str, e.absolute_path)) or '<root>'}: {e.message}" for e in errors]
        raise jsonschema.ValidationError("; ".join(lines))


def _check_consistency(report: dict[str, Any]) -> None:
    """Cross-field rules the schema cannot express."""
    problems: list[str] = []

    for kind in ("day", "night"):
        cur = report.get("currency", {}).get(kind)
        if not isinstance(cur, dict):
            continue
        expired = cur.get("state") == "expired"
        if cur.get("is_legal") == expired:
            problems.append(f"currency.{kind}: is_legal contradicts state '{cur.get('state')}'")
        if expired != (cur.get("expires_on") is None):
            problems.append(f"currency.{kind}: expires_on must be null exactly when expired")

    keys = [r.get("key") for r in report.get("requirements", [])]
    if keys and keys != [k for k, _, _ in REQUIREMENT_CATALOG]:
        problems.append(f"requirements: unexpected keys/order {keys}")

    delivered = report.get("notifications", {}).get("delivered", [])
    if len(delivered) > DAILY_CAP:
        problems.append(f"notifications.delivered: {len(delivered)} exceeds daily cap {DAILY_CAP}")

    if problems:
        raise ReportConsistencyError("; ".join(problems))


def validate_json(path: str | Path, *, expected_schema_version: str = EXPECTED_SCHEMA_VERSION) -> ValidationResult:
    """
    Validate a SoloTrack status report.

    Order matters: strict parse, then the schema-version lock (so an old
    report fails with a clear message rather than a wall of schema errors),
    then the bundled JSON schema, then cross-field consistency.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(p))

    report = _loads_object(p.read_text(encoding="utf-8"), "Report")

    actual = _schema_version_of(report)
    if actual != expected_schema_version:
        raise SchemaVersionMismatch(
            f"Schema version mismatch: expected '{expected_schema_version}', got '{actual}'."
        )

    _check_schema(report, _loads_object(_load_schema_text(), "Bundled schema"))
    _check_consistency(report)

    notifications = report.get("notifications", {})
    return ValidationResult(
        ok=True,
        schema_version=actual,
        delivered=len(notifications.get("delivered", [])),
        blocked=len(notifications.get("blocked", [])),
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Validate a SoloTrack status JSON report.")
    parser.add_argument("path", help="Path to JSON report file")
    args = parser.parse_args(argv)

    try:
        res = validate_json(args.path)
    except (
        FileNotFoundError,
        StrictJsonError,
        SchemaVersionMismatch,
        ReportConsistencyError,
        jsonschema.ValidationError,
    ) as e:
        print(f"ERROR: {e}")
        raise SystemExit(1) from e

    print(f"OK: {args.path} (schema {res.schema_version}, {res.delivered} delivered, {res.blocked} held back)")
    raise SystemExit(0)


if __name__ == "__main__":
    main()
