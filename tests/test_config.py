from __future__ import annotations

import json

import pytest

from ilp_connector.config import (
    DEFAULT_BACKEND,
    ResolvedConfig,
    TestFixtures,
    assemble_config,
    load_connector_config,
)
from ilp_connector.env import EnvironmentSource
from ilp_connector.errors import (
    IncompleteCredentialError,
    InconsistentConfigError,
    MalformedConfigError,
    UnreadableResourceError,
)


def _environ(**values) -> dict[str, str]:
    return {f"CONNECTOR_{k}": v if isinstance(v, str) else json.dumps(v) for k, v in values.items()}


def _env(**values) -> EnvironmentSource:
    return EnvironmentSource("CONNECTOR", _environ(**values))


def _credentials(tmp_path) -> dict:
    (tmp_path / "usd.key").write_bytes(b"USD-KEY")
    (tmp_path / "usd.crt").write_bytes(b"USD-CERT")
    return {
        "usd": {
            "account": "http://usd.example/accounts/mark",
            "username": "mark",
            "key": str(tmp_path / "usd.key"),
            "cert": str(tmp_path / "usd.crt"),
        },
        "eur": {
            "account_uri": "http://eur.example/accounts/mark",
            "username": "mark",
            "password": "mark",
            "type": "virtual",
        },
    }


def _write_fixtures(tmp_path) -> TestFixtures:
    fixtures_dir = tmp_path / "fixtures"
    fixtures_dir.mkdir()
    (fixtures_dir / "ledgerCredentials.json").write_text(
        json.dumps(
            {
                "http://cad.example": {
                    "account_uri": "http://cad.example/accounts/mark",
                    "username": "mark",
                    "password": "mark",
                }
            }
        ),
        encoding="utf-8",
    )
    (fixtures_dir / "tradingPairs.json").write_text(
        json.dumps([["CAD@http://cad.example", "USD@http://usd.example"]]),
        encoding="utf-8",
    )
    return TestFixtures.from_dir(fixtures_dir)


def test_defaults_for_empty_environment() -> None:
    config = assemble_config(_env())
    assert config.backend == DEFAULT_BACKEND == "fixerio"
    assert config.backend_uri is None
    assert config.fx_spread == 0.002
    assert config.slippage == 0.001
    assert config.expiry.min_message_window == 1
    assert config.expiry.max_hold_time == 10
    assert config.route_broadcast_interval == 30000
    assert config.route_cleanup_interval == 1000
    assert config.route_expiry == 45000
    assert config.features.debug_auto_fund is False
    assert config.features.debug_reply_notifications is False
    assert config.admin is None
    assert dict(config.ledger_credentials) == {}
    assert config.trading_pairs == ()
    assert config.notifications.must_verify is False
    assert config.server.base_uri is None


def test_overrides_are_applied() -> None:
    config = assemble_config(
        _env(
            BACKEND="one-to-one",
            BACKEND_URI="http://quotes.example",
            FX_SPREAD="0.01",
            SLIPPAGE="0",
            MIN_MESSAGE_WINDOW="2.5",
            MAX_HOLD_TIME="30",
            ROUTE_BROADCAST_INTERVAL="10000",
            ROUTE_CLEANUP_INTERVAL="500",
            ROUTE_EXPIRY="90000",
            DEBUG_REPLY_NOTIFICATIONS="true",
            BASE_URI="http://connector.example",
        )
    )
    assert config.backend == "one-to-one"
    assert config.backend_uri == "http://quotes.example"
    assert config.fx_spread == 0.01
    assert config.slippage == 0.0
    assert config.expiry.min_message_window == 2.5
    assert config.expiry.max_hold_time == 30
    assert config.route_broadcast_interval == 10000
    assert config.route_cleanup_interval == 500
    assert config.route_expiry == 90000
    assert config.features.debug_reply_notifications is True
    assert config.server.base_uri == "http://connector.example"


def test_unparsable_numbers_fall_back_to_defaults() -> None:
    config = assemble_config(
        _env(FX_SPREAD="wide", MAX_HOLD_TIME="-1", ROUTE_EXPIRY="soon", ROUTE_BROADCAST_INTERVAL="0")
    )
    assert config.fx_spread == 0.002
    assert config.expiry.max_hold_time == 10
    assert config.route_expiry == 45000
    assert config.route_broadcast_interval == 30000


def test_credentials_are_resolved_with_key_material(tmp_path) -> None:
    config = assemble_config(_env(CREDENTIALS=_credentials(tmp_path)))
    assert config.ledger_credentials["usd"].key == b"USD-KEY"
    assert config.ledger_credentials["usd"].cert == b"USD-CERT"
    assert config.ledger_credentials["eur"].account_uri == "http://eur.example/accounts/mark"


def test_ledgers_and_generated_pairs() -> None:
    config = assemble_config(_env(LEDGERS=["USD@http://usd.example", "EUR@http://eur.example"]))
    assert [str(ledger) for ledger in config.ledgers] == ["USD@http://usd.example", "EUR@http://eur.example"]
    assert [pair.to_list() for pair in config.trading_pairs] == [
        ["USD@http://usd.example", "EUR@http://eur.example"]
    ]


def test_validation_runs_before_assembly(tmp_path) -> None:
    credentials = _credentials(tmp_path)
    del credentials["eur"]["username"]
    with pytest.raises(IncompleteCredentialError, match="eur"):
        assemble_config(_env(CREDENTIALS=credentials))


@pytest.mark.parametrize("name", ["CREDENTIALS", "LEDGERS", "PAIRS", "NOTIFICATION_KEYS"])
def test_malformed_json_is_fatal(name: str) -> None:
    with pytest.raises(MalformedConfigError, match=f"CONNECTOR_{name}"):
        assemble_config(_env(**{name: "{not json"}))


def test_autofund_requires_admin_secret() -> None:
    with pytest.raises(
        InconsistentConfigError,
        match="CONNECTOR_DEBUG_AUTOFUND requires either CONNECTOR_ADMIN_PASS or CONNECTOR_ADMIN_KEY",
    ):
        assemble_config(_env(DEBUG_AUTOFUND="true"))


def test_autofund_with_admin_password() -> None:
    config = assemble_config(_env(DEBUG_AUTOFUND="true", ADMIN_PASS="secret"))
    assert config.features.debug_auto_fund is True
    assert config.admin is not None
    assert config.admin.username == "admin"
    assert config.admin.password == "secret"


def test_admin_key_files_are_loaded(tmp_path) -> None:
    (tmp_path / "admin.key").write_bytes(b"AK")
    (tmp_path / "admin.crt").write_bytes(b"AC")
    (tmp_path / "admin.ca").write_bytes(b"ACA")
    config = assemble_config(
        _env(
            ADMIN_USER="root",
            ADMIN_KEY=str(tmp_path / "admin.key"),
            ADMIN_CERT=str(tmp_path / "admin.crt"),
            ADMIN_CA=str(tmp_path / "admin.ca"),
        )
    )
    assert config.admin is not None
    assert (config.admin.key, config.admin.cert, config.admin.ca) == (b"AK", b"AC", b"ACA")


def test_assembly_is_a_pure_function_of_environment(tmp_path) -> None:
    environ = _environ(
        CREDENTIALS=_credentials(tmp_path),
        LEDGERS=["USD@http://usd.example", "EUR@http://eur.example"],
        ADMIN_PASS="secret",
        FX_SPREAD="0.004",
    )
    first = load_connector_config(environ=environ)
    second = load_connector_config(environ=environ)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_resolved_config_is_immutable(tmp_path) -> None:
    config = assemble_config(_env(CREDENTIALS=_credentials(tmp_path)))
    with pytest.raises(AttributeError):
        config.backend = "other"  # type: ignore[misc]
    with pytest.raises(TypeError):
        config.ledger_credentials["new"] = config.ledger_credentials["usd"]  # type: ignore[index]
    with pytest.raises(TypeError):
        config.notifications.keys["x"] = "y"  # type: ignore[index]


def test_resolved_config_copies_caller_mapping() -> None:
    credentials: dict = {}
    config = ResolvedConfig(ledger_credentials=credentials)
    credentials["late"] = object()
    assert "late" not in config.ledger_credentials


def test_redacted_view_hides_secrets(tmp_path) -> None:
    config = assemble_config(_env(CREDENTIALS=_credentials(tmp_path), ADMIN_PASS="secret"))
    payload = config.redacted()
    assert payload["ledger_credentials"]["usd"]["key"] == "[REDACTED]"
    assert payload["ledger_credentials"]["eur"]["password"] == "[REDACTED]"
    assert payload["admin"]["password"] == "[REDACTED]"
    assert "secret" not in json.dumps(payload)
    assert "USD-KEY" not in json.dumps(payload)


def test_test_mode_uses_fixtures(tmp_path) -> None:
    fixtures = _write_fixtures(tmp_path)
    env = _env(CREDENTIALS={"broken": {"username": "nobody"}})
    config = assemble_config(env, fixtures=fixtures)
    assert list(config.ledger_credentials) == ["http://cad.example"]
    assert config.ledger_credentials["http://cad.example"].password == "mark"
    assert [pair.to_list() for pair in config.trading_pairs] == [
        ["CAD@http://cad.example", "USD@http://usd.example"]
    ]
    assert config.features.debug_reply_notifications is True
    assert config.server.base_uri == "http://localhost"


def test_test_mode_server_uri_ignores_environment(tmp_path) -> None:
    config = assemble_config(_env(BASE_URI="http://connector.example"), fixtures=_write_fixtures(tmp_path))
    assert config.server.base_uri == "http://localhost"


def test_test_mode_keeps_configured_pairs(tmp_path) -> None:
    fixtures = _write_fixtures(tmp_path)
    config = assemble_config(_env(PAIRS=[["USD@L1", "EUR@L2"]]), fixtures=fixtures)
    assert [pair.to_list() for pair in config.trading_pairs] == [["USD@L1", "EUR@L2"]]


def test_test_mode_still_validates_notifications(tmp_path) -> None:
    fixtures = _write_fixtures(tmp_path)
    env = _env(LEDGERS=["USD@http://usd.example"], NOTIFICATION_VERIFY="true")
    with pytest.raises(InconsistentConfigError):
        assemble_config(env, fixtures=fixtures)


def test_missing_fixture_file_is_unreadable(tmp_path) -> None:
    with pytest.raises(UnreadableResourceError):
        assemble_config(_env(), fixtures=TestFixtures.from_dir(tmp_path / "absent"))


def test_load_connector_config_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("ALT_BACKEND", "ecb")
    config = load_connector_config(prefix="ALT")
    assert config.backend == "ecb"
