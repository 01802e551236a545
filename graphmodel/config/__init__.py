"""Configuration schema and loading for graphmodel."""

from .schema import DEFAULT_CONFIG, GraphModelConfig
from .loader import ConfigSource, load_config

__all__ = [
    "ConfigSource",
    "DEFAULT_CONFIG",
    "GraphModelConfig",
    "load_config",
]
