"""Notification signature policy."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from ilp_connector.env import EnvironmentSource
from ilp_connector.errors import MalformedConfigError


def _frozen_keys(keys: Mapping[str, str] | None = None) -> Mapping[str, str]:
    return MappingProxyType(dict(keys or {}))


@dataclass(frozen=True)
class NotificationPolicy:
    must_verify: bool = False
    keys: Mapping[str, str] = field(default_factory=_frozen_keys)

    def __post_init__(self) -> None:
        object.__setattr__(self, "keys", _frozen_keys(self.keys))

    def key_for(self, ledger_uri: str) -> str | None:
        return self.keys.get(ledger_uri)

    def to_dict(self) -> dict[str, Any]:
        return {"must_verify": self.must_verify, "keys": dict(self.keys)}


def resolve_notification_policy(env: EnvironmentSource, *, production: bool) -> NotificationPolicy:
    must_verify = env.get_bool("NOTIFICATION_VERIFY", production)

    variable = env.variable("NOTIFICATION_KEYS")
    try:
        keys = env.get_json("NOTIFICATION_KEYS", {})
    except MalformedConfigError as exc:
        raise MalformedConfigError(f"Failed to parse {variable}", variable=variable) from exc
    if not isinstance(keys, dict):
        raise MalformedConfigError(f"{variable} must be a JSON object", variable=variable)

    return NotificationPolicy(must_verify=must_verify, keys=keys)
