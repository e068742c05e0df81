"""Ledger and admin credential resolution."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from ilp_connector.env import EnvironmentSource
from ilp_connector.errors import MalformedConfigError, UnreadableResourceError

DEFAULT_ADMIN_USER = "admin"
ACCOUNT_URI_DEPRECATION = (
    "DEPRECATED: The key `account_uri` in ledger credentials has been renamed `account`"
)

_SECRET_FIELDS = ("password", "key", "cert", "ca")
_REDACTED = "[REDACTED]"


class RawCredential(BaseModel):
    """Credential record exactly as written in ``CREDENTIALS``.

    ``key``, ``cert`` and ``ca`` are file paths at this stage.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    account: Optional[str] = None
    account_uri: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    key: Optional[str] = None
    cert: Optional[str] = None
    ca: Optional[str] = None
    type: Optional[str] = None


class LedgerCredential(BaseModel):
    """Validated credential with certificate material loaded into memory."""

    model_config = ConfigDict(extra="allow", frozen=True)

    account: Optional[str] = None
    account_uri: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    key: Optional[bytes] = None
    cert: Optional[bytes] = None
    ca: Optional[bytes] = None
    type: Optional[str] = None

    @property
    def uses_client_cert(self) -> bool:
        return self.key is not None or self.cert is not None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def redacted(self) -> Dict[str, Any]:
        data = self.to_dict()
        for field in _SECRET_FIELDS:
            if field in data:
                data[field] = _REDACTED
        return data


class AdminCredential(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str
    password: Optional[str] = None
    key: Optional[bytes] = None
    cert: Optional[bytes] = None
    ca: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def redacted(self) -> Dict[str, Any]:
        data = self.to_dict()
        for field in _SECRET_FIELDS:
            if field in data:
                data[field] = _REDACTED
        return data


class RawAdmin(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str = DEFAULT_ADMIN_USER
    password: Optional[str] = None
    key: Optional[str] = None
    cert: Optional[str] = None
    ca: Optional[str] = None

    @property
    def usable(self) -> bool:
        return bool(self.username and (self.password or self.key))


def parse_credentials_env(env: EnvironmentSource) -> Dict[str, RawCredential]:
    variable = env.variable("CREDENTIALS")
    parsed = env.get_json("CREDENTIALS", {})
    if not isinstance(parsed, dict):
        raise MalformedConfigError(f"{variable} must be a JSON object", variable=variable)

    credentials: Dict[str, RawCredential] = {}
    for ledger_id, record in parsed.items():
        if not isinstance(record, dict):
            raise MalformedConfigError(
                f"{variable} entry for ledger {ledger_id} must be a JSON object",
                variable=variable,
            )
        try:
            credentials[ledger_id] = RawCredential.model_validate(record)
        except ValidationError as exc:
            raise MalformedConfigError(
                f"invalid credentials for ledger {ledger_id}: {exc}", variable=variable
            ) from exc
    return credentials


def parse_admin_env(env: EnvironmentSource) -> RawAdmin:
    return RawAdmin(
        username=env.get("ADMIN_USER") or DEFAULT_ADMIN_USER,
        password=env.get("ADMIN_PASS"),
        key=env.get("ADMIN_KEY"),
        cert=env.get("ADMIN_CERT"),
        ca=env.get("ADMIN_CA"),
    )


def check_readable(*paths: str | None) -> None:
    """Raise OSError for the first path that is set but not readable."""
    for path in paths:
        if path is None:
            continue
        if not Path(path).is_file():
            raise FileNotFoundError(f"no such file: {path}")
        if not os.access(path, os.R_OK):
            raise PermissionError(f"permission denied: {path}")


def _read(path: str | None) -> bytes | None:
    if path is None:
        return None
    return Path(path).read_bytes()


def load_credential(ledger_id: str, raw: RawCredential) -> LedgerCredential:
    data = raw.model_dump(exclude_none=True)
    try:
        for field in ("key", "cert", "ca"):
            data[field] = _read(getattr(raw, field))
    except OSError as exc:
        raise UnreadableResourceError(
            f"Failed to read credentials for ledger {ledger_id}: {exc}"
        ) from exc
    return LedgerCredential.model_validate({k: v for k, v in data.items() if v is not None})


def resolve_credentials(env: EnvironmentSource) -> Dict[str, LedgerCredential]:
    return {
        ledger_id: load_credential(ledger_id, raw)
        for ledger_id, raw in parse_credentials_env(env).items()
    }


def resolve_admin(env: EnvironmentSource) -> AdminCredential | None:
    raw = parse_admin_env(env)
    if not raw.usable:
        return None
    try:
        return AdminCredential(
            username=raw.username,
            password=raw.password,
            key=_read(raw.key),
            cert=_read(raw.cert),
            ca=_read(raw.ca),
        )
    except OSError as exc:
        raise UnreadableResourceError(f"Failed to read admin credentials: {exc}") from exc


def migrate_account_uri(credential: LedgerCredential, log: logging.Logger) -> LedgerCredential:
    """Return ``credential`` with the legacy ``account_uri`` moved to ``account``."""
    if credential.account_uri is None:
        return credential
    log.warning(ACCOUNT_URI_DEPRECATION)
    data = credential.to_dict()
    data["account"] = data.pop("account_uri")
    return LedgerCredential.model_validate(data)
