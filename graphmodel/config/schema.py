"""Configuration schema for graphmodel using Pydantic for validation.

A :class:`GraphModelConfig` is attached to every :class:`~graphmodel.Graph`.
It controls how property values are checked on assignment, how observer
errors are reported, and how deep ``import_subset`` may recurse.
"""

from typing import Any, Dict
from pydantic import BaseModel, Field


class GraphModelConfig(BaseModel):
    """Top-level configuration for a graph.

    Attributes:
        validate_property_values: Check assigned values against the data type
            of the property they are assigned to.
        convert_property_values: When validation fails, try to convert the
            value with the data type's converter before rejecting it.
        collect_observer_errors: Notify every observer even when one of them
            raises, then raise a single ``EventDispatchError``.
        max_import_depth: Largest depth accepted by ``Graph.import_subset``.
    """

    validate_property_values: bool = True
    convert_property_values: bool = True
    collect_observer_errors: bool = False
    max_import_depth: int = Field(default=64, ge=0)

    model_config = {"extra": "forbid", "frozen": True}

    @classmethod
    def default(cls) -> "GraphModelConfig":
        """Return a configuration with every option at its default."""
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GraphModelConfig":
        """Create configuration from dictionary.

        Args:
            data: Configuration dictionary. A nested ``graphmodel`` table is
                accepted so the options can live in a shared TOML file.

        Returns:
            GraphModelConfig instance.

        Raises:
            ValidationError: If configuration is invalid.
        """
        if "graphmodel" in data and isinstance(data["graphmodel"], dict):
            data = data["graphmodel"]
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()


DEFAULT_CONFIG = GraphModelConfig()


__all__ = ["DEFAULT_CONFIG", "GraphModelConfig"]
