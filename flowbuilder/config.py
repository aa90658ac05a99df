"""
Runtime settings for flowbuilder.

Values come from environment variables so the addon can be configured
without touching mitmproxy options:

- FLOWBUILDER_CONFIG: default path of the builder config file
- FLOWBUILDER_NAMESPACE: namespace builders publish into
- FLOWBUILDER_LEFT_DELIM / FLOWBUILDER_RIGHT_DELIM: delimiters used when a
  builder spec leaves them empty
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_NAMESPACE = "DEFAULT"
DEFAULT_LEFT_DELIM = "{{"
DEFAULT_RIGHT_DELIM = "}}"


@dataclass(frozen=True)
class Settings:
    config_path: str | None = None
    namespace: str = DEFAULT_NAMESPACE
    left_delim: str = DEFAULT_LEFT_DELIM
    right_delim: str = DEFAULT_RIGHT_DELIM

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            config_path=os.environ.get("FLOWBUILDER_CONFIG") or None,
            namespace=os.environ.get("FLOWBUILDER_NAMESPACE") or DEFAULT_NAMESPACE,
            left_delim=os.environ.get("FLOWBUILDER_LEFT_DELIM") or DEFAULT_LEFT_DELIM,
            right_delim=os.environ.get("FLOWBUILDER_RIGHT_DELIM") or DEFAULT_RIGHT_DELIM,
        )


config = Settings.from_env()
