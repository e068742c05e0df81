"""Prefixed environment lookup."""

from __future__ import annotations

import json
import os
from typing import Any, Mapping

from ilp_connector.errors import MalformedConfigError

DEFAULT_ENV_PREFIX = "CONNECTOR"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class EnvironmentSource:
    """Read-only view of ``<PREFIX>_*`` variables.

    The environment is copied at construction so later changes to the
    process environment cannot leak into a half-finished assembly.
    """

    def __init__(
        self, prefix: str = DEFAULT_ENV_PREFIX, environ: Mapping[str, str] | None = None
    ) -> None:
        self.prefix = prefix
        self._environ = dict(os.environ if environ is None else environ)

    def variable(self, name: str) -> str:
        return f"{self.prefix}_{name}"

    def get(self, name: str) -> str | None:
        value = self._environ.get(self.variable(name))
        if value is None:
            return None
        value = value.strip()
        return value or None

    def get_bool(self, name: str, default: bool = False) -> bool:
        value = self.get(name)
        if value is None:
            return default
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise MalformedConfigError(
            f"{self.variable(name)} must be a boolean", variable=self.variable(name)
        )

    def get_json(self, name: str, default: Any = None) -> Any:
        value = self.get(name)
        if value is None:
            return default
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise MalformedConfigError(
                f"Failed to parse {self.variable(name)}: {exc}", variable=self.variable(name)
            ) from exc

    def get_float(self, name: str, default: float, *, positive: bool = False) -> float:
        value = self.get(name)
        if value is None:
            return default
        try:
            parsed = float(value)
        except ValueError:
            return default
        if parsed != parsed or parsed in (float("inf"), float("-inf")):
            return default
        if positive and parsed <= 0:
            return default
        return parsed

    def get_int(self, name: str, default: int, *, positive: bool = False) -> int:
        value = self.get(name)
        if value is None:
            return default
        try:
            parsed = int(value)
        except ValueError:
            return default
        if positive and parsed <= 0:
            return default
        return parsed
