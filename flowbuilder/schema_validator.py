"""
JSON Schema validation for builder configuration records.

Three schemas are known:
- builder: the template fields shared by every builder
- filter: a builder plus its pipeline identity (name, kind)
- config: the file loaded by the mitmproxy addon
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from jsonschema import Draft202012Validator

logger = logging.getLogger(__name__)


_BUILDER_PROPERTIES: dict[str, Any] = {
    "leftDelim": {"type": "string"},
    "rightDelim": {"type": "string"},
    "sourceNamespace": {"type": "string"},
    "template": {"type": "string"},
}

SCHEMAS: dict[str, dict] = {
    "builder": {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": _BUILDER_PROPERTIES,
        "additionalProperties": False,
    },
    "filter": {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "name": {"type": "string", "minLength": 1},
            "kind": {"type": "string", "minLength": 1},
            **_BUILDER_PROPERTIES,
        },
        "required": ["name", "kind"],
        "additionalProperties": False,
    },
    "config": {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "request": {"type": "array", "items": {"type": "object"}},
            "response": {"type": "array", "items": {"type": "object"}},
        },
        "additionalProperties": False,
    },
}


@dataclass
class ValidationResult:
    """Result of schema validation."""

    valid: bool
    errors: list[str]

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(valid=True, errors=[])

    @classmethod
    def failure(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=False, errors=errors)


class SchemaValidator:
    """Validates configuration records against the known schemas."""

    # Validator cache
    _validators: dict[str, Draft202012Validator] = {}

    @classmethod
    def _get_validator(cls, schema_name: str) -> Draft202012Validator:
        """Get or create a validator for a schema."""
        if schema_name in cls._validators:
            return cls._validators[schema_name]

        schema = SCHEMAS.get(schema_name)
        if schema is None:
            raise KeyError(f"Unknown schema: {schema_name}")

        validator = Draft202012Validator(schema)
        cls._validators[schema_name] = validator
        return validator

    @classmethod
    def validate(
        cls,
        data: Any,
        schema_name: str,
        context: str = "",
    ) -> ValidationResult:
        """
        Validate data against one of the known schemas.

        Args:
            data: The record to validate
            schema_name: Key into SCHEMAS
            context: Optional context string for error messages (e.g., filter name)

        Returns:
            ValidationResult with valid=True if valid, or valid=False with error messages
        """
        validator = cls._get_validator(schema_name)

        errors: list[str] = []
        for error in sorted(validator.iter_errors(data), key=lambda e: str(list(e.path))):
            path = ".".join(str(p) for p in error.path) or "(root)"
            prefix = f"{context}: " if context else ""
            errors.append(f"{prefix}{path}: {error.message}")

        if errors:
            for error in errors:
                logger.debug(f"Schema validation error: {error}")
            return ValidationResult.failure(errors)

        return ValidationResult.success()


def validate_builder_spec(spec: Any, context: str = "") -> ValidationResult:
    """Convenience function to validate a builder spec record."""
    return SchemaValidator.validate(spec, "builder", context)


def validate_filter_spec(spec: Any, context: str = "") -> ValidationResult:
    """Convenience function to validate a filter spec record."""
    return SchemaValidator.validate(spec, "filter", context)


def validate_config(config: Any, context: str = "") -> ValidationResult:
    """Convenience function to validate an addon config file."""
    return SchemaValidator.validate(config, "config", context)
