"""Configuration loading, validation and logging setup for hostcache.

Brief:
    Groups the YAML parser, JSON Schema validation and logging helpers.

Inputs:
    - None.

Outputs:
    - None.
"""

from __future__ import annotations

from .config_parser import build_resolver, parse_config_file
from .config_schema import validate_config
from .logging_config import init_logging

__all__ = ["build_resolver", "init_logging", "parse_config_file", "validate_config"]
