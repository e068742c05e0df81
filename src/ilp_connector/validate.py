"""Fail-fast validation of the raw connector environment.

Checks run over the parsed but not yet defaulted values, always in the same
order: notification keys, then ledger credentials, then admin credentials.
The first violation is raised; nothing is mutated or loaded.
"""

from __future__ import annotations

from ilp_connector.credentials import (
    RawAdmin,
    RawCredential,
    check_readable,
    parse_admin_env,
    parse_credentials_env,
)
from ilp_connector.crypto.condition import validate_condition
from ilp_connector.env import EnvironmentSource
from ilp_connector.errors import (
    IncompleteCredentialError,
    InconsistentConfigError,
    InvalidConditionError,
    UnreadableResourceError,
)
from ilp_connector.notifications import NotificationPolicy, resolve_notification_policy
from ilp_connector.pairs import LedgerDescriptor, parse_ledgers


def validate_notifications(
    policy: NotificationPolicy, ledgers: tuple[LedgerDescriptor, ...]
) -> None:
    if not policy.must_verify:
        return
    for descriptor in ledgers:
        uri = descriptor.ledger
        key = policy.key_for(uri)
        if key is None:
            raise InconsistentConfigError(f"Missing notification signing keys for ledger: {uri}")
        try:
            validate_condition(key)
        except InvalidConditionError as exc:
            raise InvalidConditionError(
                f"Failed to read signing key for ledger {uri}: {exc}"
            ) from exc


def validate_credential(ledger_id: str, credential: RawCredential) -> None:
    if credential.key is None and credential.password is None:
        raise IncompleteCredentialError(
            f"Missing key or password for ledger: {ledger_id}", ledger_id=ledger_id
        )
    if credential.username is None:
        raise IncompleteCredentialError(
            f"Missing username for ledger: {ledger_id}", ledger_id=ledger_id
        )
    if (credential.cert is None) != (credential.key is None):
        raise IncompleteCredentialError(
            f"Missing certificate or key for ledger: {ledger_id}", ledger_id=ledger_id
        )
    if credential.account is None and credential.account_uri is None:
        raise IncompleteCredentialError(
            f"Missing account for ledger: {ledger_id}", ledger_id=ledger_id
        )

    try:
        check_readable(credential.cert, credential.key, credential.ca)
    except OSError as exc:
        raise UnreadableResourceError(
            f"Failed to read credentials for ledger {ledger_id}: {exc}"
        ) from exc


def validate_credentials(credentials: dict[str, RawCredential]) -> None:
    for ledger_id, credential in credentials.items():
        validate_credential(ledger_id, credential)


def validate_admin(admin: RawAdmin) -> None:
    if (admin.cert is None) != (admin.key is None):
        raise IncompleteCredentialError("Missing ADMIN_CERT or ADMIN_KEY")
    try:
        check_readable(admin.cert, admin.key, admin.ca)
    except OSError as exc:
        raise UnreadableResourceError(f"Failed to read admin credentials: {exc}") from exc


def validate_environment(
    env: EnvironmentSource,
    *,
    production: bool = False,
    include_credentials: bool = True,
) -> None:
    validate_notifications(
        resolve_notification_policy(env, production=production),
        parse_ledgers(env),
    )
    if include_credentials:
        validate_credentials(parse_credentials_env(env))
    validate_admin(parse_admin_env(env))
