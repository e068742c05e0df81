"""Command-line interface for ilp-connector."""

from __future__ import annotations

import argparse
import json
import re
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Sequence

from ilp_connector.config import ResolvedConfig, TestFixtures, load_connector_config
from ilp_connector.env import DEFAULT_ENV_PREFIX
from ilp_connector.errors import ConfigError, ConnectorError, UnknownPluginTypeError
from ilp_connector.logs import configure_logging
from ilp_connector.multiledger import LedgerPluginRegistry

EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_PLUGIN_ERROR = 2

_SENSITIVE_FIELDS = (
    "password",
    "pass",
    "secret",
    "token",
    "authorization",
    "api_key",
)


def _package_version() -> str:
    try:
        return pkg_version("ilp-connector-config")
    except PackageNotFoundError:
        return "0.0.0+local"


def _add_env_arguments(parser: argparse.ArgumentParser, *, fixtures: bool = True) -> None:
    parser.add_argument(
        "--prefix",
        default=DEFAULT_ENV_PREFIX,
        help=f"Environment variable prefix (default: {DEFAULT_ENV_PREFIX})",
    )
    parser.add_argument(
        "--production",
        action="store_true",
        help="Production mode: notification verification defaults to on",
    )
    if fixtures:
        parser.add_argument(
            "--fixtures-dir",
            default=None,
            help="Test mode: load ledgerCredentials.json and tradingPairs.json from this directory",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ilp-connector")
    parser.add_argument(
        "--version",
        action="version",
        version=f"ilp-connector {_package_version()}",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for connector loggers (default: WARNING)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    config = sub.add_parser("config", help="Validate or inspect the connector configuration")
    config_sub = config.add_subparsers(dest="config_command", required=True)
    config_check = config_sub.add_parser("check", help="Validate the environment and exit")
    _add_env_arguments(config_check, fixtures=False)
    config_show = config_sub.add_parser("show", help="Print the resolved configuration")
    _add_env_arguments(config_show)
    config_show.add_argument("--json", action="store_true")

    ledgers = sub.add_parser("ledgers", help="Inspect ledger plugins")
    ledgers_sub = ledgers.add_subparsers(dest="ledgers_command", required=True)
    ledgers_status = ledgers_sub.add_parser(
        "status", help="Connect every configured ledger and report health"
    )
    _add_env_arguments(ledgers_status)
    ledgers_status.add_argument("--json", action="store_true")

    return parser


def _sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)(\b{field}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    redacted = re.sub(r"(?i)(://[^:/@\s]+:)([^@\s]+)(@)", r"\1[REDACTED]\3", redacted)
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _load_config(args) -> ResolvedConfig:
    fixtures = TestFixtures.from_dir(args.fixtures_dir) if args.fixtures_dir else None
    return load_connector_config(
        prefix=args.prefix,
        production=args.production,
        fixtures=fixtures,
    )


def _run_config_check(*, args, stdout, stderr) -> int:
    try:
        load_connector_config(prefix=args.prefix, production=args.production)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_CONFIG_ERROR)
    print("ok", file=stdout)
    return EXIT_SUCCESS


def _run_config_show(*, args, stdout, stderr) -> int:
    try:
        config = _load_config(args)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_CONFIG_ERROR)

    payload = config.redacted()
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print(f"backend: {payload['backend']}", file=stdout)
    print(f"ledgers: {', '.join(payload['ledgers']) or '(none)'}", file=stdout)
    print(f"trading pairs: {len(payload['trading_pairs'])}", file=stdout)
    print(f"credentials: {', '.join(sorted(payload['ledger_credentials'])) or '(none)'}", file=stdout)
    print(f"notification verify: {str(payload['notifications']['must_verify']).lower()}", file=stdout)
    print(f"admin: {'configured' if payload['admin'] else 'none'}", file=stdout)
    return EXIT_SUCCESS


def _run_ledgers_status(*, args, stdout, stderr) -> int:
    try:
        config = _load_config(args)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_CONFIG_ERROR)

    registry = LedgerPluginRegistry(config)
    try:
        registry.build()
    except UnknownPluginTypeError as exc:
        return _print_error(stderr, "plugin error", str(exc), code=EXIT_PLUGIN_ERROR)

    errors: dict[str, str] = {}
    try:
        for ledger_id, plugin in registry.get_all().items():
            try:
                plugin.connect()
            except ConnectorError as exc:
                errors[ledger_id] = _sanitize_error_text(str(exc))

        health = registry.health()
        healthy = registry.get_status()
        ledgers = {
            ledger_id: {
                "type": registry.get_type(ledger_id),
                "connected": plugin.is_connected(),
                **({"error": errors[ledger_id]} if ledger_id in errors else {}),
            }
            for ledger_id, plugin in registry.get_all().items()
        }
    finally:
        registry.disconnect()

    if args.json:
        print(json.dumps({"ledgers": ledgers, **health}, sort_keys=True), file=stdout)
    else:
        for ledger_id, state in sorted(ledgers.items()):
            status = "connected" if state["connected"] else "disconnected"
            line = f"{ledger_id} [{state['type']}]: {status}"
            if "error" in state:
                line += f" ({state['error']})"
            print(line, file=stdout)
        print(f"ledgersHealth: {health['ledgersHealth']}", file=stdout)

    return EXIT_SUCCESS if healthy else EXIT_PLUGIN_ERROR


def main(argv: Sequence[str] | None = None, *, stdout=sys.stdout, stderr=sys.stderr) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level, stream=stderr)
    except ValueError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_CONFIG_ERROR)

    if args.command == "config":
        if args.config_command == "check":
            return _run_config_check(args=args, stdout=stdout, stderr=stderr)
        if args.config_command == "show":
            return _run_config_show(args=args, stdout=stdout, stderr=stderr)

    if args.command == "ledgers":
        if args.ledgers_command == "status":
            return _run_ledgers_status(args=args, stdout=stdout, stderr=stderr)

    print("unknown command", file=stderr)
    return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
