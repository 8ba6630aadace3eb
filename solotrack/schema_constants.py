"""
Central contract constants for SoloTrack.

This module prevents circular imports and ensures schema version + schema filename
are derived from a single source of truth.
"""

SCHEMA_VERSION = "v1"

SCHEMA_RESOURCE_PACKAGE = "solotrack.schemas"
SCHEMA_RESOURCE_NAME = f"solotrack_status.schema.{SCHEMA_VERSION}.json"
