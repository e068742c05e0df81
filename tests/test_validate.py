from __future__ import annotations

import json
import os

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from ilp_connector.crypto.condition import ed25519_condition
from ilp_connector.env import EnvironmentSource
from ilp_connector.errors import (
    IncompleteCredentialError,
    InconsistentConfigError,
    InvalidConditionError,
    MalformedConfigError,
    UnreadableResourceError,
)
from ilp_connector.validate import validate_environment

LEDGERS = ["USD@http://usd.example", "EUR@http://eur.example"]


def _signing_key() -> str:
    public = Ed25519PrivateKey.generate().public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return ed25519_condition(public)


def _env(**values) -> EnvironmentSource:
    return EnvironmentSource(
        "CONNECTOR",
        {f"CONNECTOR_{k}": v if isinstance(v, str) else json.dumps(v) for k, v in values.items()},
    )


def _password_credential(**overrides) -> dict:
    credential = {"account": "http://usd.example/accounts/mark", "username": "mark", "password": "pw"}
    credential.update(overrides)
    return {key: value for key, value in credential.items() if value is not None}


def test_valid_environment_passes(tmp_path) -> None:
    keys = {uri.split("@", 1)[1]: _signing_key() for uri in LEDGERS}
    validate_environment(
        _env(
            LEDGERS=LEDGERS,
            NOTIFICATION_VERIFY="true",
            NOTIFICATION_KEYS=keys,
            CREDENTIALS={"usd": _password_credential()},
        )
    )


def test_missing_key_and_password_names_ledger() -> None:
    env = _env(CREDENTIALS={"usd-ledger": _password_credential(password=None)})
    with pytest.raises(IncompleteCredentialError, match="Missing key or password for ledger: usd-ledger") as excinfo:
        validate_environment(env)
    assert excinfo.value.ledger_id == "usd-ledger"


def test_missing_username() -> None:
    env = _env(CREDENTIALS={"usd": _password_credential(username=None)})
    with pytest.raises(IncompleteCredentialError, match="Missing username for ledger: usd"):
        validate_environment(env)


@pytest.mark.parametrize("present", ["key", "cert"])
def test_cert_and_key_must_both_be_present(tmp_path, present: str) -> None:
    path = tmp_path / "material.pem"
    path.write_bytes(b"x")
    credential = _password_credential(password=None if present == "key" else "pw", **{present: str(path)})
    with pytest.raises(IncompleteCredentialError, match="Missing certificate or key for ledger: usd"):
        validate_environment(_env(CREDENTIALS={"usd": credential}))


def test_missing_account() -> None:
    env = _env(CREDENTIALS={"usd": _password_credential(account=None)})
    with pytest.raises(IncompleteCredentialError, match="Missing account for ledger: usd"):
        validate_environment(env)


def test_legacy_account_uri_satisfies_account_check() -> None:
    credential = _password_credential(account=None, account_uri="http://usd.example/accounts/mark")
    validate_environment(_env(CREDENTIALS={"usd": credential}))


def test_missing_files_are_unreadable(tmp_path) -> None:
    credential = _password_credential(ca=str(tmp_path / "nope.pem"))
    with pytest.raises(UnreadableResourceError, match="Failed to read credentials for ledger usd"):
        validate_environment(_env(CREDENTIALS={"usd": credential}))


@pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs unprivileged posix user")
def test_unreadable_file_is_reported(tmp_path) -> None:
    path = tmp_path / "locked.pem"
    path.write_bytes(b"x")
    path.chmod(0)
    credential = _password_credential(ca=str(path))
    with pytest.raises(UnreadableResourceError):
        validate_environment(_env(CREDENTIALS={"usd": credential}))


def test_must_verify_requires_key_for_every_ledger() -> None:
    env = _env(
        LEDGERS=LEDGERS,
        NOTIFICATION_VERIFY="true",
        NOTIFICATION_KEYS={"http://usd.example": _signing_key()},
    )
    with pytest.raises(InconsistentConfigError, match="Missing notification signing keys for ledger: http://eur.example"):
        validate_environment(env)


def test_production_turns_verification_on_by_default() -> None:
    env = _env(LEDGERS=LEDGERS)
    validate_environment(env)
    with pytest.raises(InconsistentConfigError, match="Missing notification signing keys"):
        validate_environment(env, production=True)


def test_explicit_verify_false_overrides_production() -> None:
    validate_environment(_env(LEDGERS=LEDGERS, NOTIFICATION_VERIFY="false"), production=True)


def test_invalid_signing_key_is_rejected() -> None:
    env = _env(
        LEDGERS=["USD@http://usd.example"],
        NOTIFICATION_VERIFY="true",
        NOTIFICATION_KEYS={"http://usd.example": "not-a-condition"},
    )
    with pytest.raises(InvalidConditionError, match="Failed to read signing key for ledger http://usd.example"):
        validate_environment(env)


def test_malformed_notification_keys() -> None:
    with pytest.raises(MalformedConfigError, match="Failed to parse CONNECTOR_NOTIFICATION_KEYS"):
        validate_environment(_env(NOTIFICATION_KEYS="{oops"))


def test_notifications_are_checked_before_credentials() -> None:
    env = _env(
        LEDGERS=["USD@http://usd.example"],
        NOTIFICATION_VERIFY="true",
        CREDENTIALS={"usd": _password_credential(username=None)},
        ADMIN_KEY="/nope/admin.key",
    )
    with pytest.raises(InconsistentConfigError, match="notification signing keys"):
        validate_environment(env)


def test_credentials_are_checked_before_admin() -> None:
    env = _env(CREDENTIALS={"usd": _password_credential(username=None)}, ADMIN_KEY="/nope/admin.key")
    with pytest.raises(IncompleteCredentialError, match="Missing username"):
        validate_environment(env)


def test_admin_cert_without_key() -> None:
    with pytest.raises(IncompleteCredentialError, match="Missing ADMIN_CERT or ADMIN_KEY"):
        validate_environment(_env(ADMIN_CERT="/tmp/admin.crt"))


def test_admin_files_must_be_readable(tmp_path) -> None:
    env = _env(ADMIN_KEY=str(tmp_path / "admin.key"), ADMIN_CERT=str(tmp_path / "admin.crt"))
    with pytest.raises(UnreadableResourceError, match="Failed to read admin credentials"):
        validate_environment(env)


def test_credentials_can_be_skipped() -> None:
    env = _env(CREDENTIALS={"usd": _password_credential(username=None)})
    validate_environment(env, include_credentials=False)
