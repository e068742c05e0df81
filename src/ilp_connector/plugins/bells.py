"""HTTP connectivity plugin for five-bells style ledgers.

Connecting probes the account resource with the configured credentials.
Client certificate material is held in memory by the resolved config; the
plugin writes it to a private temporary directory for as long as the
session is open because ``requests`` only accepts certificate file paths.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from ilp_connector.errors import PluginConnectionError
from ilp_connector.plugins.base import LedgerPlugin, PluginOptions


class BellsLedgerPlugin(LedgerPlugin):
    TYPE = "bells"

    def __init__(self, options: PluginOptions, *, timeout: float = 10.0, retries: int = 2) -> None:
        super().__init__(options)
        self.timeout = timeout
        self.retries = retries
        self._connected = False
        self._session = None
        self._material_dir: tempfile.TemporaryDirectory | None = None

    def _build_session(self):
        try:
            import requests
            from requests.adapters import HTTPAdapter
            from urllib3.util.retry import Retry
        except Exception as exc:  # pragma: no cover
            raise PluginConnectionError(f"requests stack unavailable: {exc}") from exc

        session = self._session = requests.Session()
        retry = Retry(
            total=max(0, int(self.retries)),
            connect=max(0, int(self.retries)),
            read=max(0, int(self.retries)),
            status=max(0, int(self.retries)),
            status_forcelist=(429, 500, 502, 503, 504),
            backoff_factor=0.2,
            allowed_methods=("GET",),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        creds = self.credentials
        if creds.uses_client_cert:
            session.cert = (
                self._write_material("cert.pem", creds.cert),
                self._write_material("key.pem", creds.key),
            )
        elif creds.username is not None and creds.password is not None:
            session.auth = (creds.username, creds.password)
        if creds.ca is not None:
            session.verify = self._write_material("ca.pem", creds.ca)
        return session

    def _write_material(self, name: str, content: bytes | None) -> str:
        if content is None:
            raise PluginConnectionError(f"missing {name} material for ledger {self.id}")
        if self._material_dir is None:
            self._material_dir = tempfile.TemporaryDirectory(prefix="ilp-connector-")
        path = Path(self._material_dir.name) / name
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        return str(path)

    def connect(self) -> None:
        if self._connected:
            return
        if not self.account:
            raise PluginConnectionError(f"no account configured for ledger {self.id}")

        try:
            self._session = self._build_session()
            response = self._session.get(self.account, timeout=self.timeout)
        except PluginConnectionError:
            self.disconnect()
            raise
        except Exception as exc:
            self.disconnect()
            raise PluginConnectionError(f"failed to reach ledger {self.id}: {exc}") from exc

        if response.status_code >= 400:
            self.disconnect()
            raise PluginConnectionError(
                f"ledger {self.id} rejected account probe: {response.status_code} {response.text}"
            )

        self._connected = True
        self.log.info("connected to ledger %s as %s", self.id, self.account)
        if self.debug_autofund is not None:
            self.log.info("debug auto-fund enabled for ledger %s", self.id)

    def disconnect(self) -> None:
        self._connected = False
        if self._session is not None:
            self._session.close()
            self._session = None
        if self._material_dir is not None:
            self._material_dir.cleanup()
            self._material_dir = None

    def is_connected(self) -> bool:
        return self._connected
