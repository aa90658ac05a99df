"""
Decode rendered templates into caller-owned destinations.

The rendered text is read as YAML (first document only). Supported
destinations, all written in place:
- a mutable mapping: updated with the document's keys
- a mutable sequence: extended with the document's items
- a dataclass instance: fields set from the document's keys

Dataclass fields are matched by ``field(metadata={"yaml": "key"})`` or by
attribute name, and values are checked against the field's type hints.
Unknown keys are ignored.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from collections.abc import Mapping
from collections.abc import MutableMapping
from collections.abc import MutableSequence
from typing import Any

import yaml

from flowbuilder.errors import DecodeError

logger = logging.getLogger(__name__)


def decode(document: str | bytes, destination: Any) -> None:
    """
    Decode a YAML document into destination.

    Args:
        document: Rendered template output
        destination: Mapping, sequence or dataclass instance to populate

    Raises:
        DecodeError: On invalid YAML, an empty document or a shape mismatch.
            The destination may be partially written.
            A null document leaves the destination unchanged.
    """
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"document is not valid UTF-8: {e}") from e

    try:
        value = next(yaml.safe_load_all(document))
    except StopIteration:
        raise DecodeError("no document to decode") from None
    except yaml.YAMLError as e:
        raise DecodeError(f"invalid YAML: {e}") from e

    # A null document leaves any supported destination untouched
    if value is None and _is_destination(destination):
        logger.debug("Decoded a null document, destination left unchanged")
        return

    if isinstance(destination, MutableMapping):
        if not isinstance(value, Mapping):
            raise DecodeError(f"cannot decode {_kind(value)} into a mapping")
        destination.update(value)
    elif isinstance(destination, MutableSequence):
        if not isinstance(value, list):
            raise DecodeError(f"cannot decode {_kind(value)} into a sequence")
        destination.extend(value)
    elif dataclasses.is_dataclass(destination) and not isinstance(destination, type):
        if type(destination).__dataclass_params__.frozen:
            raise DecodeError("cannot decode into a frozen dataclass")
        _populate(destination, value, type(destination).__name__)
    else:
        raise DecodeError(f"unsupported destination type: {type(destination).__name__}")


def _is_destination(destination: Any) -> bool:
    if isinstance(destination, (MutableMapping, MutableSequence)):
        return True
    return dataclasses.is_dataclass(destination) and not isinstance(destination, type)


def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, list):
        return "sequence"
    return type(value).__name__


def _yaml_key(f: dataclasses.Field) -> str:
    return f.metadata.get("yaml", f.name)


def _populate(instance: Any, value: Any, path: str) -> None:
    """Set the fields of a dataclass instance from a mapping."""
    if not isinstance(value, Mapping):
        raise DecodeError(f"{path}: cannot decode {_kind(value)} into {type(instance).__name__}")

    hints = typing.get_type_hints(type(instance))
    fields = {_yaml_key(f): f for f in dataclasses.fields(instance)}

    for key, item in value.items():
        f = fields.get(str(key))
        if f is None:
            logger.debug(f"{path}: ignoring unknown key {key!r}")
            continue
        converted = _convert(item, hints.get(f.name, Any), f"{path}.{key}")
        setattr(instance, f.name, converted)


def _build(cls: type, value: Any, path: str) -> Any:
    """Create a new dataclass instance from a mapping."""
    if not isinstance(value, Mapping):
        raise DecodeError(f"{path}: cannot decode {_kind(value)} into {cls.__name__}")

    hints = typing.get_type_hints(cls)
    fields = {_yaml_key(f): f for f in dataclasses.fields(cls) if f.init}
    kwargs: dict[str, Any] = {}
    for key, item in value.items():
        f = fields.get(str(key))
        if f is None:
            logger.debug(f"{path}: ignoring unknown key {key!r}")
            continue
        kwargs[f.name] = _convert(item, hints.get(f.name, Any), f"{path}.{key}")

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise DecodeError(f"{path}: {e}") from e


def _convert(value: Any, tp: Any, path: str) -> Any:
    """Check and convert a decoded value against a type hint."""
    if tp is Any or tp is object:
        return value

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Union or origin is types.UnionType:
        if value is None and type(None) in args:
            return None
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _convert(value, arg, path)
            except DecodeError:
                continue
        raise DecodeError(f"{path}: cannot decode {_kind(value)} into {tp}")

    if origin is list:
        if not isinstance(value, list):
            raise DecodeError(f"{path}: cannot decode {_kind(value)} into a list")
        item_type = args[0] if args else Any
        return [_convert(v, item_type, f"{path}[{i}]") for i, v in enumerate(value)]

    if origin is dict:
        if not isinstance(value, Mapping):
            raise DecodeError(f"{path}: cannot decode {_kind(value)} into a mapping")
        value_type = args[1] if len(args) == 2 else Any
        return {str(k): _convert(v, value_type, f"{path}.{k}") for k, v in value.items()}

    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return _build(tp, value, path)

    if tp is str:
        if isinstance(value, (Mapping, list)):
            raise DecodeError(f"{path}: cannot decode {_kind(value)} into str")
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    if tp is bool:
        if not isinstance(value, bool):
            raise DecodeError(f"{path}: cannot decode {_kind(value)} into bool")
        return value

    if tp is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(f"{path}: cannot decode {_kind(value)} into int")
        return value

    if tp is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodeError(f"{path}: cannot decode {_kind(value)} into float")
        return float(value)

    if isinstance(tp, type) and not isinstance(value, tp):
        raise DecodeError(f"{path}: cannot decode {_kind(value)} into {tp.__name__}")

    return value
