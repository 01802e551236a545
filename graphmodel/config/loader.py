"""Helpers for loading graph model configuration from TOML/JSON sources.

This module provides a single entry point `load_config` that accepts
various configuration sources:

* None -> default GraphModelConfig
* GraphModelConfig -> returned unchanged
* dict -> GraphModelConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from graphmodel.config.schema import GraphModelConfig

logger = logging.getLogger("graphmodel.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], GraphModelConfig, None]


def _detect_format(text: str) -> str:
    stripped = text.lstrip()
    if stripped.startswith("{"):
        return "json"
    if stripped.startswith("["):
        # A TOML table header also starts with a bracket.
        try:
            json.loads(stripped)
        except json.JSONDecodeError:
            return "toml"
        return "json"
    return "toml"



def load_config(source: ConfigSource = None) -> GraphModelConfig:
    """Load GraphModelConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns GraphModelConfig.default()
            * GraphModelConfig: returned as is
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        GraphModelConfig instance.

    Raises:
        TypeError: If the source type is not supported.
        ValueError: If the parsed document is not a mapping.
        ValidationError: If an option has an invalid value.
    """
    if source is None:
        logger.debug("No config source provided; using default GraphModelConfig")
        return GraphModelConfig.default()

    if isinstance(source, GraphModelConfig):
        return source

    if isinstance(source, dict):
        logger.debug("Loading GraphModelConfig from provided dict")
        return GraphModelConfig.from_dict(source)

    if isinstance(source, (str, Path)):
        text: Optional[str] = None
        fmt: Optional[str] = None
        path = Path(source)

        is_file = False
        try:
            is_file = path.is_file()
        except OSError:
            # Inline text too long to be a path.
            is_file = False

        if is_file:
            text = path.read_text(encoding="utf-8")
            suffix = path.suffix.lower()
            if suffix in {".toml", ".tml"}:
                fmt = "toml"
            elif suffix == ".json":
                fmt = "json"
            else:
                fmt = _detect_format(text)
            logger.debug("Loading configuration from file: %s (fmt=%s)", path, fmt)
        else:
            text = str(source)
            fmt = _detect_format(text)
            logger.debug("Loading configuration from inline %s string", fmt)

        if fmt == "json":
            data = json.loads(text)
        else:
            data = tomllib.loads(text)

        if not isinstance(data, dict):
            raise ValueError("Top-level configuration must be a mapping/dict")

        return GraphModelConfig.from_dict(data)

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


__all__ = ["ConfigSource", "load_config"]
