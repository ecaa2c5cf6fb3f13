"""JSON Schema-based validation for hostcache YAML configuration.

The schema document lives at ``assets/config-schema.json`` in the source
tree.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import SchemaError

logger = logging.getLogger(__name__)

UNKNOWN_KEY_POLICIES = ("ignore", "warn", "error")


def get_default_schema_path() -> Path:
    """Brief: Resolve the default JSON Schema path for configuration.

    Inputs:
      - None.

    Outputs:
      - Path to ``assets/config-schema.json`` (may not exist when the package
        is installed without its source tree).
    """

    here = Path(__file__).resolve()
    for ancestor in here.parents:
        candidate = ancestor / "assets" / "config-schema.json"
        if candidate.is_file():
            return candidate
    return here.parents[3] / "assets" / "config-schema.json"


def _load_schema(schema_path: Path) -> Dict[str, Any]:
    with schema_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _format_errors(errors: List[ValidationError], *, config_path: Optional[str]) -> str:
    lines: List[str] = [f"Invalid configuration in {config_path or '<config dict>'}:"]
    for err in errors:
        instance_path = "/".join(str(p) for p in err.path) or "<root>"
        schema_path = "/".join(str(p) for p in err.schema_path)
        lines.append(f"- {instance_path}: {err.message} (schema: {schema_path})")
    return "\n".join(lines)


def validate_config(
    cfg: Dict[str, Any],
    *,
    schema_path: Optional[Path] = None,
    config_path: Optional[str] = None,
    unknown_keys: str = "warn",
) -> None:
    """Brief: Validate a parsed configuration mapping against the JSON Schema.

    Inputs:
      - cfg: Mapping loaded from YAML (variables already expanded).
      - schema_path: Optional explicit schema file; defaults to
        get_default_schema_path().
      - config_path: Optional YAML path, used only in error messages.
      - unknown_keys: "ignore", "warn" (default) or "error" for keys the
        schema does not describe.

    Outputs:
      - None on success.

    Raises:
      - ValueError: on schema violations, or on unknown keys when
        ``unknown_keys`` is "error".

    Example:
      >>> validate_config({"resolver": {"backend": "system"}})
    """

    if unknown_keys not in UNKNOWN_KEY_POLICIES:
        raise ValueError(
            f"unknown_keys policy must be 'ignore', 'warn', or 'error', got {unknown_keys!r}"
        )

    effective_schema_path = schema_path or get_default_schema_path()
    if not effective_schema_path.is_file():
        logger.warning(
            "Configuration schema file %s not found; skipping JSON Schema validation",
            effective_schema_path,
        )
        return None

    try:
        schema = _load_schema(effective_schema_path)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(
            "Failed to load configuration schema at %s: %s; skipping JSON Schema validation",
            effective_schema_path,
            exc,
        )
        return None

    try:
        validator = Draft202012Validator(schema)
        all_errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
    except SchemaError as exc:
        logger.warning("Invalid configuration schema %s: %s", effective_schema_path, exc)
        return None

    extra = [e for e in all_errors if e.validator == "additionalProperties"]
    other = [e for e in all_errors if e.validator != "additionalProperties"]

    if other:
        raise ValueError(_format_errors(other + extra, config_path=config_path))
    if not extra or unknown_keys == "ignore":
        return None

    message = _format_errors(extra, config_path=config_path)
    if unknown_keys == "warn":
        logger.warning(message)
        return None
    raise ValueError(message)
