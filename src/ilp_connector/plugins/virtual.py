"""In-memory ledger plugin for local runs and tests."""

from __future__ import annotations

from ilp_connector.plugins.base import LedgerPlugin, PluginOptions


class VirtualLedgerPlugin(LedgerPlugin):
    TYPE = "virtual"

    def __init__(self, options: PluginOptions) -> None:
        super().__init__(options)
        self._connected = False

    def connect(self) -> None:
        self._connected = True
        self.log.info("connected to virtual ledger %s", self.id)

    def disconnect(self) -> None:
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected
