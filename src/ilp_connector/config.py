"""Connector configuration assembly.

``assemble_config`` is the single entry point that turns a prefixed
environment into a :class:`ResolvedConfig`. It validates first and either
returns a complete value or raises; there is no partially populated state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import ValidationError

from ilp_connector.credentials import (
    AdminCredential,
    LedgerCredential,
    parse_admin_env,
    resolve_admin,
    resolve_credentials,
)
from ilp_connector.env import DEFAULT_ENV_PREFIX, EnvironmentSource
from ilp_connector.errors import (
    InconsistentConfigError,
    MalformedConfigError,
    UnreadableResourceError,
)
from ilp_connector.notifications import NotificationPolicy, resolve_notification_policy
from ilp_connector.pairs import (
    LedgerDescriptor,
    TradingPair,
    parse_pairs,
    parse_ledgers,
    resolve_trading_pairs,
)
from ilp_connector.validate import validate_environment

DEFAULT_BACKEND = "fixerio"
DEFAULT_MIN_MESSAGE_WINDOW = 1.0  # seconds
DEFAULT_MAX_HOLD_TIME = 10.0  # seconds
DEFAULT_FX_SPREAD = 0.002
DEFAULT_SLIPPAGE = 0.001
DEFAULT_ROUTE_BROADCAST_INTERVAL = 30 * 1000  # milliseconds
DEFAULT_ROUTE_CLEANUP_INTERVAL = 1000  # milliseconds
DEFAULT_ROUTE_EXPIRY = 45 * 1000  # milliseconds

TEST_SERVER_BASE_URI = "http://localhost"
LEDGER_CREDENTIALS_FIXTURE = "ledgerCredentials.json"
TRADING_PAIRS_FIXTURE = "tradingPairs.json"


@dataclass(frozen=True)
class ExpiryConfig:
    min_message_window: float = DEFAULT_MIN_MESSAGE_WINDOW
    max_hold_time: float = DEFAULT_MAX_HOLD_TIME


@dataclass(frozen=True)
class FeatureFlags:
    debug_auto_fund: bool = False
    debug_reply_notifications: bool = False


@dataclass(frozen=True)
class ServerConfig:
    base_uri: str | None = None


@dataclass(frozen=True)
class TestFixtures:
    """Fixture files that replace real credentials in test mode."""

    __test__ = False

    ledger_credentials_path: Path
    trading_pairs_path: Path

    @classmethod
    def from_dir(cls, directory: str | Path) -> "TestFixtures":
        base = Path(directory)
        return cls(
            ledger_credentials_path=base / LEDGER_CREDENTIALS_FIXTURE,
            trading_pairs_path=base / TRADING_PAIRS_FIXTURE,
        )


@dataclass(frozen=True)
class ResolvedConfig:
    ledger_credentials: Mapping[str, LedgerCredential]
    ledgers: tuple[LedgerDescriptor, ...] = ()
    trading_pairs: tuple[TradingPair, ...] = ()
    backend: str = DEFAULT_BACKEND
    backend_uri: str | None = None
    fx_spread: float = DEFAULT_FX_SPREAD
    slippage: float = DEFAULT_SLIPPAGE
    expiry: ExpiryConfig = field(default_factory=ExpiryConfig)
    features: FeatureFlags = field(default_factory=FeatureFlags)
    admin: AdminCredential | None = None
    notifications: NotificationPolicy = field(default_factory=NotificationPolicy)
    route_broadcast_interval: int = DEFAULT_ROUTE_BROADCAST_INTERVAL
    route_cleanup_interval: int = DEFAULT_ROUTE_CLEANUP_INTERVAL
    route_expiry: int = DEFAULT_ROUTE_EXPIRY
    server: ServerConfig = field(default_factory=ServerConfig)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "ledger_credentials", MappingProxyType(dict(self.ledger_credentials))
        )

    def to_dict(self, *, redact: bool = False) -> dict[str, Any]:
        def credential_view(credential):
            return credential.redacted() if redact else credential.to_dict()

        return {
            "backend": self.backend,
            "backend_uri": self.backend_uri,
            "fx_spread": self.fx_spread,
            "slippage": self.slippage,
            "expiry": {
                "min_message_window": self.expiry.min_message_window,
                "max_hold_time": self.expiry.max_hold_time,
            },
            "features": {
                "debug_auto_fund": self.features.debug_auto_fund,
                "debug_reply_notifications": self.features.debug_reply_notifications,
            },
            "admin": credential_view(self.admin) if self.admin is not None else None,
            "ledger_credentials": {
                ledger_id: credential_view(credential)
                for ledger_id, credential in self.ledger_credentials.items()
            },
            "ledgers": [str(descriptor) for descriptor in self.ledgers],
            "trading_pairs": [pair.to_list() for pair in self.trading_pairs],
            "notifications": self.notifications.to_dict(),
            "route_broadcast_interval": self.route_broadcast_interval,
            "route_cleanup_interval": self.route_cleanup_interval,
            "route_expiry": self.route_expiry,
            "server": {"base_uri": self.server.base_uri},
        }

    def redacted(self) -> dict[str, Any]:
        return self.to_dict(redact=True)


def _load_fixture_json(path: Path) -> Any:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise UnreadableResourceError(f"Failed to read test fixture {path}: {exc}") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedConfigError(f"Failed to parse test fixture {path}: {exc}") from exc


def load_fixture_credentials(path: Path) -> dict[str, LedgerCredential]:
    parsed = _load_fixture_json(path)
    if not isinstance(parsed, dict):
        raise MalformedConfigError(f"test fixture {path} must be a JSON object")
    try:
        return {
            ledger_id: LedgerCredential.model_validate(record)
            for ledger_id, record in parsed.items()
        }
    except ValidationError as exc:
        raise MalformedConfigError(f"invalid credentials in test fixture {path}: {exc}") from exc


def load_fixture_pairs(path: Path) -> tuple[TradingPair, ...]:
    return parse_pairs(_load_fixture_json(path), variable=str(path))


def _resolve_expiry(env: EnvironmentSource) -> ExpiryConfig:
    return ExpiryConfig(
        min_message_window=env.get_float(
            "MIN_MESSAGE_WINDOW", DEFAULT_MIN_MESSAGE_WINDOW, positive=True
        ),
        max_hold_time=env.get_float("MAX_HOLD_TIME", DEFAULT_MAX_HOLD_TIME, positive=True),
    )


def assemble_config(
    env: EnvironmentSource,
    *,
    production: bool = False,
    fixtures: TestFixtures | None = None,
) -> ResolvedConfig:
    """Validate ``env`` and build the connector configuration.

    Passing ``fixtures`` selects test mode: ledger credentials come from the
    fixture file without credential validation or file loading, an empty
    pair list is replaced by the fixture pairs and reply notifications are
    forced on.
    """
    test_mode = fixtures is not None
    validate_environment(env, production=production, include_credentials=not test_mode)

    ledgers = parse_ledgers(env)
    trading_pairs = resolve_trading_pairs(env, ledgers)

    debug_auto_fund = env.get_bool("DEBUG_AUTOFUND")
    debug_reply_notifications = env.get_bool("DEBUG_REPLY_NOTIFICATIONS")

    if debug_auto_fund and not parse_admin_env(env).usable:
        raise InconsistentConfigError(
            f"{env.variable('DEBUG_AUTOFUND')} requires either "
            f"{env.variable('ADMIN_PASS')} or {env.variable('ADMIN_KEY')}"
        )
    admin = resolve_admin(env)

    server = ServerConfig(base_uri=env.get("BASE_URI"))
    if fixtures is not None:
        server = ServerConfig(base_uri=TEST_SERVER_BASE_URI)
        ledger_credentials = load_fixture_credentials(fixtures.ledger_credentials_path)
        if not trading_pairs:
            trading_pairs = load_fixture_pairs(fixtures.trading_pairs_path)
        debug_reply_notifications = True
    else:
        ledger_credentials = resolve_credentials(env)

    return ResolvedConfig(
        backend=env.get("BACKEND") or DEFAULT_BACKEND,
        backend_uri=env.get("BACKEND_URI"),
        fx_spread=env.get_float("FX_SPREAD", DEFAULT_FX_SPREAD),
        slippage=env.get_float("SLIPPAGE", DEFAULT_SLIPPAGE),
        expiry=_resolve_expiry(env),
        features=FeatureFlags(
            debug_auto_fund=debug_auto_fund,
            debug_reply_notifications=debug_reply_notifications,
        ),
        admin=admin,
        ledger_credentials=ledger_credentials,
        ledgers=ledgers,
        trading_pairs=trading_pairs,
        notifications=resolve_notification_policy(env, production=production),
        route_broadcast_interval=env.get_int(
            "ROUTE_BROADCAST_INTERVAL", DEFAULT_ROUTE_BROADCAST_INTERVAL, positive=True
        ),
        route_cleanup_interval=env.get_int(
            "ROUTE_CLEANUP_INTERVAL", DEFAULT_ROUTE_CLEANUP_INTERVAL, positive=True
        ),
        route_expiry=env.get_int("ROUTE_EXPIRY", DEFAULT_ROUTE_EXPIRY, positive=True),
        server=server,
    )


def load_connector_config(
    *,
    prefix: str = DEFAULT_ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
    production: bool = False,
    fixtures: TestFixtures | None = None,
) -> ResolvedConfig:
    return assemble_config(
        EnvironmentSource(prefix, environ), production=production, fixtures=fixtures
    )
