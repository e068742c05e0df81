"""Ledger plugin registry.

Builds one plugin handle per configured ledger and reports aggregate
connectivity. ``build()`` is meant to run exactly once at startup; calling
it again is not supported and raises :class:`RegistryStateError`.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ilp_connector.config import ResolvedConfig
from ilp_connector.credentials import migrate_account_uri
from ilp_connector.errors import RegistryStateError, UnknownLedgerError
from ilp_connector.health import (
    STATUS_DEGRADED,
    STATUS_NOT_OK,
    STATUS_OK,
    HealthStatus,
)
from ilp_connector.logs import LoggerFactory, get_logger
from ilp_connector.plugins import (
    DEFAULT_PLUGIN_TYPE,
    AutoFundSettings,
    LedgerPlugin,
    PluginFactoryRegistry,
    PluginOptions,
    default_plugins,
)


class LedgerPluginRegistry:
    def __init__(
        self,
        config: ResolvedConfig,
        *,
        plugins: PluginFactoryRegistry | None = None,
        make_logger: LoggerFactory = get_logger,
    ) -> None:
        self.config = config
        self.plugins = plugins if plugins is not None else default_plugins()
        self.make_logger = make_logger
        self.log = make_logger("multiledger")
        self._ledgers: dict[str, LedgerPlugin] = {}
        self._built = False
        self.ledgers_health: dict[str, HealthStatus] = {"ledgersHealth": STATUS_NOT_OK}

    @property
    def built(self) -> bool:
        return self._built

    def _autofund_settings(self) -> AutoFundSettings | None:
        if not self.config.features.debug_auto_fund:
            return None
        return AutoFundSettings(admin=self.config.admin, connector=self.config.server.base_uri)

    def build(self) -> "LedgerPluginRegistry":
        if self._built:
            raise RegistryStateError("ledger plugins were already built; restart the registry")

        ledgers: dict[str, LedgerPlugin] = {}
        for ledger_id, credential in self.config.ledger_credentials.items():
            credential = migrate_account_uri(credential, self.log)
            plugin_type = credential.type or DEFAULT_PLUGIN_TYPE
            if credential.type is None:
                credential = credential.model_copy(update={"type": plugin_type})

            factory = self.plugins.get(plugin_type)
            ledgers[ledger_id] = factory(
                PluginOptions(
                    ledger_id=ledger_id,
                    credentials=credential,
                    log=self.make_logger(f"plugin-{plugin_type}"),
                    debug_reply_notifications=self.config.features.debug_reply_notifications,
                    debug_autofund=self._autofund_settings(),
                )
            )
            self.log.debug("built %s plugin for ledger %s", plugin_type, ledger_id)

        self._ledgers = ledgers
        self._built = True
        return self

    def get(self, ledger_id: str) -> LedgerPlugin | None:
        return self._ledgers.get(ledger_id)

    def get_all(self) -> Mapping[str, LedgerPlugin]:
        return MappingProxyType(dict(self._ledgers))

    def get_type(self, ledger_id: str) -> str:
        plugin = self.get(ledger_id)
        if plugin is None:
            raise UnknownLedgerError(f"unknown ledger: {ledger_id}")
        return type(plugin).TYPE

    def get_status(self) -> bool:
        # No ledgers means nothing to route over.
        if not self._ledgers:
            return False
        return all(plugin.is_connected() for plugin in self._ledgers.values())

    def connect(self) -> None:
        if not self._built:
            raise RegistryStateError("ledger plugins have not been built")
        for ledger_id, plugin in self._ledgers.items():
            self.log.info("connecting ledger %s", ledger_id)
            plugin.connect()

    def disconnect(self) -> None:
        for plugin in self._ledgers.values():
            plugin.disconnect()

    def health(self) -> dict[str, HealthStatus]:
        if self.get_status():
            status = STATUS_OK
        elif any(plugin.is_connected() for plugin in self._ledgers.values()):
            status = STATUS_DEGRADED
        else:
            status = STATUS_NOT_OK
        self.ledgers_health = {"ledgersHealth": status}
        return dict(self.ledgers_health)
