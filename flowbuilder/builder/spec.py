"""
Builder configuration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flowbuilder.errors import ConfigurationError
from flowbuilder.schema_validator import validate_builder_spec
from flowbuilder.schema_validator import validate_filter_spec


@dataclass(frozen=True)
class BuilderSpec:
    """
    The spec of a builder.

    Exactly one of source_namespace and template must be set. Empty
    delimiters fall back to the configured defaults ("{{" and "}}" unless
    FLOWBUILDER_LEFT_DELIM and FLOWBUILDER_RIGHT_DELIM are set).
    """

    left_delim: str = ""
    right_delim: str = ""
    source_namespace: str = ""
    template: str = ""

    @classmethod
    def from_dict(cls, config: dict[str, Any], context: str = "") -> BuilderSpec:
        """
        Create a validated BuilderSpec from a configuration record.

        Args:
            config: Record with leftDelim, rightDelim, sourceNamespace, template
            context: Optional context for error messages (e.g., filter name)

        Raises:
            ConfigurationError: If the record doesn't match the schema or
                violates the source_namespace/template exclusion
        """
        result = validate_builder_spec(config, context)
        if not result.valid:
            raise ConfigurationError("; ".join(result.errors))

        spec = cls(
            left_delim=config.get("leftDelim", ""),
            right_delim=config.get("rightDelim", ""),
            source_namespace=config.get("sourceNamespace", ""),
            template=config.get("template", ""),
        )
        spec.validate()
        return spec

    def validate(self) -> None:
        """Validate the builder spec."""
        if not self.source_namespace and not self.template:
            raise ConfigurationError("sourceNamespace or template must be specified")

        if self.source_namespace and self.template:
            raise ConfigurationError(
                "sourceNamespace and template cannot be specified at the same time"
            )


def parse_filter_spec(config: dict[str, Any]) -> tuple[str, BuilderSpec]:
    """
    Split a filter record into its name and builder spec.

    Raises:
        ConfigurationError: If the record is invalid
    """
    context = str(config.get("name", "")) if isinstance(config, dict) else ""
    result = validate_filter_spec(config, context)
    if not result.valid:
        raise ConfigurationError("; ".join(result.errors))

    name = config["name"]
    builder_config = {k: v for k, v in config.items() if k not in ("name", "kind")}
    return name, BuilderSpec.from_dict(builder_config, context=name)
