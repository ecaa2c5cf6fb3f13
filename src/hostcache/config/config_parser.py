"""Configuration parsing helpers for hostcache.

Brief:
  Reads the YAML config file, merges variables from the file, the
  environment and the CLI, expands ``${VAR}`` references, validates the
  result against the JSON Schema and builds a Resolver from it.

Inputs:
  - YAML config paths and parsed config dicts

Outputs:
  - Normalized config dicts and Resolver instances
"""

from __future__ import annotations

import copy
import json
import os
import re
from typing import Any, Dict, List, Optional

import yaml

from ..backends.registry import load_backend
from ..cache import ResolutionCache
from ..resolver import Resolver
from .config_schema import validate_config

_VAR_NAME = re.compile(r"[A-Z_][A-Z0-9_]*")
_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


def _is_var_key(key: str) -> bool:
    return bool(key) and bool(_VAR_NAME.fullmatch(key))


def _parse_yaml_value(text: str) -> Any:
    """Parse a CLI/environment value as YAML, keeping the raw string on errors."""
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def parse_config_variables(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Brief: Merge config/environment/CLI variables into cfg['variables'].

    Inputs:
      - cfg: Parsed YAML configuration mapping (mutated in-place).
      - cli_vars: Optional list of CLI `KEY=YAML` assignments.
      - environ: Optional environment mapping (defaults to os.environ).

    Outputs:
      - dict: The merged variables mapping stored back onto cfg['variables'].

    Precedence:
      - CLI (--var) overrides environment, which overrides the config file.
        Only environment variables prefixed with HOSTCACHE_ are considered,
        with the prefix stripped.

    Example:
      >>> cfg = {'variables': {'BACKEND': 'system'}}
      >>> parse_config_variables(cfg, cli_vars=['BACKEND=dnspython'], environ={})['BACKEND']
      'dnspython'
    """

    base = cfg.get("variables")
    if base is None:
        merged: Dict[str, Any] = {}
    elif isinstance(base, dict):
        merged = dict(base)
    else:
        raise ValueError("config.variables must be a mapping when present")

    for k in merged:
        if not isinstance(k, str) or not _is_var_key(k):
            raise ValueError(f"config.variables key {k!r} must match [A-Z_][A-Z0-9_]*")

    env = os.environ if environ is None else environ
    for k, v in env.items():
        if not k.startswith("HOSTCACHE_"):
            continue
        name = k[len("HOSTCACHE_") :]
        if _is_var_key(name):
            merged[name] = _parse_yaml_value(str(v))

    for assignment in cli_vars or []:
        if "=" not in assignment:
            raise ValueError(
                "Invalid --var value (expected KEY=YAML), got: %r" % assignment
            )
        k, raw = assignment.split("=", 1)
        k = k.strip()
        if not _is_var_key(k):
            raise ValueError(
                "Invalid variable name %r (must be ALL_UPPERCASE and match [A-Z_][A-Z0-9_]*)"
                % k
            )
        merged[k] = _parse_yaml_value(raw)

    cfg["variables"] = merged
    return merged


def expand_variables(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Brief: Substitute ``${KEY}`` references and drop the variables group.

    Inputs:
      - cfg: Configuration mapping (mutated in-place).

    Outputs:
      - The same mapping, without the ``variables`` key.

    Notes:
      - A string that is exactly ``${KEY}`` is replaced by the variable's value
        (which may be a list, mapping, number or bool); otherwise references
        are substituted as text. Unknown references are left untouched.
      - Variables may reference each other; cycles raise ValueError.
    """

    variables: Dict[str, Any] = cfg.pop("variables", None) or {}
    resolved: Dict[str, Any] = {}

    def _resolve(key: str, stack: List[str]) -> Any:
        if key in resolved:
            return resolved[key]
        if key in stack:
            cycle = " -> ".join(stack + [key])
            raise ValueError(f"config.variables contains a cycle: {cycle}")
        value = _expand(variables[key], stack + [key])
        resolved[key] = value
        return value

    def _as_text(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return "null"
        if isinstance(value, (int, float, str)):
            return str(value)
        return json.dumps(value)

    def _expand(obj: Any, stack: List[str]) -> Any:
        if isinstance(obj, str):
            whole = _VAR_PATTERN.fullmatch(obj)
            if whole and whole.group(1) in variables:
                return copy.deepcopy(_resolve(whole.group(1), stack))

            def _repl(match: re.Match[str]) -> str:
                name = match.group(1)
                if name not in variables:
                    return match.group(0)
                return _as_text(_resolve(name, stack))

            return _VAR_PATTERN.sub(_repl, obj)
        if isinstance(obj, list):
            return [_expand(item, stack) for item in obj]
        if isinstance(obj, dict):
            return {k: _expand(v, stack) for k, v in obj.items()}
        return obj

    for key in list(variables):
        _resolve(key, [])
    for top_key in list(cfg.keys()):
        cfg[top_key] = _expand(cfg[top_key], [])
    return cfg


def parse_config_file(
    config_path: str,
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
    unknown_keys: str = "warn",
) -> Dict[str, Any]:
    """Brief: Read, variable-merge, expand and schema-validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML configuration file.
      - cli_vars: Optional list of CLI `KEY=YAML` assignments.
      - environ: Optional environment mapping.
      - unknown_keys: Policy passed to validate_config.

    Outputs:
      - dict: Parsed configuration mapping.

    Raises:
      - ValueError: When the file is not valid YAML or not a mapping,
        variables are invalid or schema validation fails.
      - OSError: When the file cannot be read.
    """

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(cfg, dict):
        raise ValueError("Configuration root must be a mapping")

    parse_config_variables(cfg, cli_vars=list(cli_vars or []), environ=environ)
    expand_variables(cfg)
    validate_config(cfg, config_path=config_path, unknown_keys=unknown_keys)
    return cfg


def build_resolver(
    cfg: Optional[Dict[str, Any]] = None,
    *,
    cache: Optional[ResolutionCache] = None,
) -> Resolver:
    """Brief: Construct a Resolver from the ``resolver`` config section.

    Inputs:
      - cfg: Full configuration mapping (or None for defaults).
      - cache: Optional ResolutionCache to share with other resolvers.

    Outputs:
      - Resolver instance.

    Example:
      >>> r = build_resolver({"resolver": {"backend": "system", "serialize_lookups": False}})
      >>> r.serialize_lookups
      False
    """

    section = (cfg or {}).get("resolver") or {}
    if not isinstance(section, dict):
        raise ValueError("config.resolver must be a mapping when present")

    backend = load_backend(section.get("backend"), section.get("backend_config"))
    return Resolver(
        cache=cache,
        backend=backend,
        serialize_lookups=bool(section.get("serialize_lookups", True)),
    )
