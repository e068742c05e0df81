"""Ledger plugin factories keyed by credential ``type``."""

from __future__ import annotations

from typing import Callable, Iterator

from ilp_connector.errors import UnknownPluginTypeError
from ilp_connector.plugins.base import AutoFundSettings, LedgerPlugin, PluginOptions
from ilp_connector.plugins.bells import BellsLedgerPlugin
from ilp_connector.plugins.virtual import VirtualLedgerPlugin

DEFAULT_PLUGIN_TYPE = BellsLedgerPlugin.TYPE

PluginFactory = Callable[[PluginOptions], LedgerPlugin]


class PluginFactoryRegistry:
    def __init__(self) -> None:
        self._factories: dict[str, PluginFactory] = {}

    def register(self, plugin_type: str, factory: PluginFactory) -> None:
        if not plugin_type:
            raise ValueError("plugin type must not be empty")
        self._factories[plugin_type] = factory

    def get(self, plugin_type: str) -> PluginFactory:
        try:
            return self._factories[plugin_type]
        except KeyError:
            raise UnknownPluginTypeError(plugin_type) from None

    def types(self) -> tuple[str, ...]:
        return tuple(sorted(self._factories))

    def __contains__(self, plugin_type: object) -> bool:
        return plugin_type in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self.types())


def default_plugins() -> PluginFactoryRegistry:
    registry = PluginFactoryRegistry()
    registry.register(BellsLedgerPlugin.TYPE, BellsLedgerPlugin)
    registry.register(VirtualLedgerPlugin.TYPE, VirtualLedgerPlugin)
    return registry


__all__ = [
    "DEFAULT_PLUGIN_TYPE",
    "AutoFundSettings",
    "BellsLedgerPlugin",
    "LedgerPlugin",
    "PluginFactory",
    "PluginFactoryRegistry",
    "PluginOptions",
    "VirtualLedgerPlugin",
    "default_plugins",
]
