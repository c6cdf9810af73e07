"""Activity bundle loading

A bundle is the snapshot the upstream aggregator hands to the engine: one
``user`` record plus lists of tasks, projects, time logs, comments and
documents. Bundles exported by the web product use camelCase keys
(``dueDate``, ``uploadedBy``); they are normalized to snake_case here.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Union

import yaml

RECORD_KINDS = ("tasks", "projects", "time_logs", "comments", "documents")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class BundleError(Exception):
    """Exception raised for unreadable or malformed activity bundles"""


def to_snake_case(key: str) -> str:
    """Convert a camelCase key to snake_case ("allocatedHours" -> "allocated_hours")"""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def normalize_keys(value: Any) -> Any:
    """Recursively convert dict keys to snake_case."""
    if isinstance(value, dict):
        return {
            (to_snake_case(k) if isinstance(k, str) else k): normalize_keys(v) for k, v in value.items()
        }
    if isinstance(value, list):
        return [normalize_keys(item) for item in value]
    return value


def parse_bundle(raw: Any) -> Dict[str, Any]:
    """Validate and normalize a decoded bundle.

    Args:
        raw: Decoded JSON/YAML document

    Returns:
        Dict with ``user`` and one list per record kind (missing kinds are empty)

    Raises:
        BundleError: If the document is not a mapping, has no user, or a record
            list is not a list
    """
    if not isinstance(raw, dict):
        raise BundleError("Bundle must be a mapping with a 'user' entry")

    data = normalize_keys(raw)

    user = data.get("user")
    if not isinstance(user, dict) or user.get("id") is None:
        raise BundleError("Bundle 'user' must be a mapping with an 'id'")

    bundle: Dict[str, Any] = {"user": user}
    for kind in RECORD_KINDS:
        records = data.get(kind) or []
        if not isinstance(records, list):
            raise BundleError(f"Bundle '{kind}' must be a list, got {type(records).__name__}")
        bundle[kind] = [record for record in records if isinstance(record, dict)]

    if "time_window" in data:
        bundle["time_window"] = data["time_window"]

    return bundle


def load_bundle(path: Union[str, Path]) -> Dict[str, Any]:
    """Load an activity bundle from a JSON or YAML file

    Args:
        path: Path to the bundle (.json, .yaml or .yml)

    Returns:
        Normalized bundle dict (see parse_bundle)

    Raises:
        BundleError: If the file is missing, can't be decoded, or is malformed
    """
    bundle_path = Path(path)
    if not bundle_path.exists():
        raise BundleError(f"Bundle file not found: {bundle_path}")

    try:
        with open(bundle_path, "r", encoding="utf-8") as f:
            if bundle_path.suffix.lower() in (".yaml", ".yml"):
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise BundleError(f"Could not decode bundle {bundle_path}: {e}") from e

    return parse_bundle(raw)
