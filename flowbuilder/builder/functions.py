"""
Functions callable from builder templates.

Two groups are provided:
- STANDARD_FUNCTIONS: general purpose string, encoding, list/map, math and
  date helpers, named and ordered like the sprig library (the piped value
  comes last, e.g. ``trimPrefix("-", value)``)
- EXTRA_FUNCTIONS: builder specific helpers (float math, logging,
  object merging, header lookup, panic)

Templates only see what is registered in a FunctionRegistry.
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import re
import secrets
import string
import textwrap
import uuid
from collections.abc import Mapping
from datetime import datetime
from datetime import timezone
from types import MappingProxyType
from typing import Any
from typing import Callable
from urllib.parse import quote_plus

import yaml

# Logger used by the template ``log`` function
template_logger = logging.getLogger("flowbuilder.template")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class TemplateFunctionError(Exception):
    """Raised by template functions to abort rendering."""


class FunctionRegistry:
    """
    Named callables installed into compiled templates.

    The registry is explicit: templates can call nothing that was not
    registered here (besides the template language's own globals).
    """

    def __init__(self, functions: Mapping[str, Callable[..., Any]] | None = None):
        self._functions: dict[str, Callable[..., Any]] = {}
        for name, func in (functions or {}).items():
            self.register(name, func)

    def register(self, name: str, func: Callable[..., Any]) -> None:
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid template function name: {name!r}")
        if not callable(func):
            raise ValueError(f"Template function {name!r} is not callable")
        self._functions[name] = func

    def merge(self, other: FunctionRegistry | Mapping[str, Callable[..., Any]]) -> FunctionRegistry:
        """Return a new registry with other's functions overriding ours."""
        merged = FunctionRegistry(self._functions)
        items = other.as_mapping() if isinstance(other, FunctionRegistry) else other
        for name, func in items.items():
            merged.register(name, func)
        return merged

    def get(self, name: str) -> Callable[..., Any] | None:
        return self._functions.get(name)

    def names(self) -> list[str]:
        return sorted(self._functions)

    def as_mapping(self) -> Mapping[str, Callable[..., Any]]:
        return MappingProxyType(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)


# =============================================================================
# Standard functions
# =============================================================================


def _to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _to_float(value: Any) -> float:
    if isinstance(value, str):
        value = value.strip()
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise TemplateFunctionError(f"cannot convert {value!r} to a number") from e


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        value = value.strip()
    try:
        return int(float(value)) if not isinstance(value, int) else value
    except (TypeError, ValueError) as e:
        raise TemplateFunctionError(f"cannot convert {value!r} to an integer") from e


def _empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    return False


def _default(default: Any, value: Any = None) -> Any:
    return default if _empty(value) else value


def _coalesce(*values: Any) -> Any:
    for value in values:
        if not _empty(value):
            return value
    return None


def _ternary(true_value: Any, false_value: Any, condition: Any) -> Any:
    return true_value if condition else false_value


def _substr(start: int, end: int, s: str) -> str:
    if start < 0:
        return s[:end]
    if end < 0 or end > len(s):
        return s[start:]
    return s[start:end]


def _trunc(length: int, s: str) -> str:
    if length < 0:
        return s[length:] if -length < len(s) else s
    return s[:length]


def _indent(spaces: int, s: str) -> str:
    return textwrap.indent(_to_string(s), " " * spaces, lambda line: True)


def _nindent(spaces: int, s: str) -> str:
    return "\n" + _indent(spaces, s)


def _join(sep: str, values: Any) -> str:
    if isinstance(values, (str, bytes)):
        return _to_string(values)
    return sep.join(_to_string(v) for v in values)


def _b64dec(s: str) -> str:
    try:
        return base64.b64decode(s, validate=True).decode("utf-8")
    except (ValueError, UnicodeDecodeError) as e:
        raise TemplateFunctionError(f"b64dec: {e}") from e


def _from_json(s: str) -> Any:
    try:
        return json.loads(s)
    except json.JSONDecodeError as e:
        raise TemplateFunctionError(f"fromJson: {e}") from e


def _to_yaml(value: Any) -> str:
    return yaml.safe_dump(value, default_flow_style=False, sort_keys=True).rstrip("\n")


def _from_yaml(s: str) -> Any:
    try:
        return yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise TemplateFunctionError(f"fromYaml: {e}") from e


def _dict(*pairs: Any) -> dict[str, Any]:
    if len(pairs) % 2:
        pairs = (*pairs, "")
    return {_to_string(pairs[i]): pairs[i + 1] for i in range(0, len(pairs), 2)}


def _get(mapping: Mapping[str, Any], key: str) -> Any:
    return mapping.get(key, "")


def _first(values: Any) -> Any:
    return values[0] if values else None


def _last(values: Any) -> Any:
    return values[-1] if values else None


def _uniq(values: Any) -> list[Any]:
    result: list[Any] = []
    for value in values:
        if value not in result:
            result.append(value)
    return result


def _product(values: Any) -> int:
    result = 1
    for value in values:
        result *= value
    return result


def _regex_find(regex: str, s: Any) -> str:
    match = re.search(regex, _to_string(s))
    return match.group(0) if match else ""


def _div(a: Any, b: Any) -> int:
    divisor = _to_int(b)
    if divisor == 0:
        raise TemplateFunctionError("integer divide by zero")
    return int(_to_int(a) / divisor)


def _mod(a: Any, b: Any) -> int:
    divisor = _to_int(b)
    if divisor == 0:
        raise TemplateFunctionError("integer divide by zero")
    return _to_int(a) % divisor


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError as e:
            raise TemplateFunctionError(f"cannot parse date {value!r}") from e
    raise TemplateFunctionError(f"cannot convert {value!r} to a date")


def _date(fmt: str, value: Any) -> str:
    """Format a date with strftime directives."""
    return _as_datetime(value).strftime(fmt)


def _unix_epoch(value: Any) -> str:
    return str(int(_as_datetime(value).timestamp()))


def _rand_alpha_num(length: int) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


STANDARD_FUNCTIONS: dict[str, Callable[..., Any]] = {
    # strings
    "upper": lambda s: _to_string(s).upper(),
    "lower": lambda s: _to_string(s).lower(),
    "title": lambda s: _to_string(s).title(),
    "trim": lambda s: _to_string(s).strip(),
    "trimAll": lambda chars, s: _to_string(s).strip(chars),
    "trimPrefix": lambda prefix, s: _to_string(s).removeprefix(prefix),
    "trimSuffix": lambda suffix, s: _to_string(s).removesuffix(suffix),
    "contains": lambda substr, s: substr in _to_string(s),
    "hasPrefix": lambda prefix, s: _to_string(s).startswith(prefix),
    "hasSuffix": lambda suffix, s: _to_string(s).endswith(suffix),
    "replace": lambda old, new, s: _to_string(s).replace(old, new),
    "repeat": lambda count, s: _to_string(s) * count,
    "substr": _substr,
    "trunc": _trunc,
    "nospace": lambda s: "".join(_to_string(s).split()),
    "quote": lambda *values: " ".join(json.dumps(_to_string(v)) for v in values),
    "squote": lambda *values: " ".join(f"'{_to_string(v)}'" for v in values),
    "cat": lambda *values: " ".join(_to_string(v) for v in values if v is not None),
    "indent": _indent,
    "nindent": _nindent,
    "splitList": lambda sep, s: _to_string(s).split(sep),
    "join": _join,
    "toString": _to_string,
    # regex
    "regexMatch": lambda regex, s: re.search(regex, _to_string(s)) is not None,
    "regexFind": _regex_find,
    "regexReplaceAll": lambda regex, s, repl: re.sub(regex, repl, _to_string(s)),
    # encoding
    "b64enc": lambda s: base64.b64encode(_to_string(s).encode("utf-8")).decode("ascii"),
    "b64dec": _b64dec,
    "sha256sum": lambda s: hashlib.sha256(_to_string(s).encode("utf-8")).hexdigest(),
    "toJson": lambda v: json.dumps(v, separators=(",", ":"), default=str),
    "toPrettyJson": lambda v: json.dumps(v, indent=2, default=str),
    "fromJson": _from_json,
    "toYaml": _to_yaml,
    "fromYaml": _from_yaml,
    "urlquery": lambda *values: quote_plus("".join(_to_string(v) for v in values)),
    # defaults
    "default": _default,
    "empty": _empty,
    "coalesce": _coalesce,
    "ternary": _ternary,
    # lists and maps
    "list": lambda *values: list(values),
    "dict": _dict,
    "get": _get,
    "hasKey": lambda mapping, key: key in mapping,
    "keys": lambda *mappings: [k for m in mappings for k in m],
    "values": lambda mapping: list(mapping.values()),
    "first": _first,
    "last": _last,
    "append": lambda values, value: [*values, value],
    "uniq": _uniq,
    # math
    "add": lambda *values: sum(_to_int(v) for v in values),
    "sub": lambda a, b: _to_int(a) - _to_int(b),
    "mul": lambda *values: _product(_to_int(v) for v in values),
    "div": _div,
    "mod": _mod,
    "max": lambda *values: max(_to_int(v) for v in values),
    "min": lambda *values: min(_to_int(v) for v in values),
    "atoi": _to_int,
    "int": _to_int,
    "float64": _to_float,
    # dates
    "now": _now,
    "date": _date,
    "unixEpoch": _unix_epoch,
    # ids
    "uuidv4": lambda: str(uuid.uuid4()),
    "randAlphaNum": _rand_alpha_num,
}


# =============================================================================
# Extra builder functions
# =============================================================================


def _divf(a: Any, b: Any) -> float:
    divisor = _to_float(b)
    if divisor == 0:
        raise TemplateFunctionError("divf: divisor is zero")
    return _to_float(a) / divisor


def _log(level: str, message: Any) -> str:
    """Write a message to the template logger; renders as nothing."""
    levels = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    template_logger.log(levels.get(level.lower(), logging.INFO), _to_string(message))
    return ""


def _merge_object(*objects: Mapping[str, Any]) -> dict[str, Any]:
    """Merge mappings left to right; later keys win."""
    merged: dict[str, Any] = {}
    for obj in objects:
        if obj is None:
            continue
        if not isinstance(obj, Mapping):
            raise TemplateFunctionError(f"mergeObject: {obj!r} is not an object")
        merged.update(obj)
    return merged


def _json_escape(s: Any) -> str:
    """Escape a string so it can be embedded inside a JSON string literal."""
    return json.dumps(_to_string(s))[1:-1]


def _header(headers: Mapping[str, Any], key: str) -> str:
    """Case-insensitive header lookup. Multi-valued headers yield the first value."""
    wanted = key.lower()
    for name, value in headers.items():
        if name.lower() == wanted:
            if isinstance(value, (list, tuple)):
                return _to_string(value[0]) if value else ""
            return _to_string(value)
    return ""


def _panic(message: Any) -> None:
    raise TemplateFunctionError(_to_string(message))


EXTRA_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "addf": lambda a, b: _to_float(a) + _to_float(b),
    "subf": lambda a, b: _to_float(a) - _to_float(b),
    "mulf": lambda a, b: _to_float(a) * _to_float(b),
    "divf": _divf,
    "log": _log,
    "mergeObject": _merge_object,
    "jsonEscape": _json_escape,
    "header": _header,
    "panic": _panic,
}


def default_registry() -> FunctionRegistry:
    """Standard functions plus the extra builder functions."""
    return FunctionRegistry(STANDARD_FUNCTIONS).merge(EXTRA_FUNCTIONS)
