"""Connector configuration and bootstrap error types."""

from __future__ import annotations


class ConnectorError(RuntimeError):
    """Base connector error."""


class ConfigError(ConnectorError, ValueError):
    """Configuration is invalid; the connector must not start."""


class MalformedConfigError(ConfigError):
    """A structured environment value could not be parsed."""

    def __init__(self, message: str, *, variable: str | None = None) -> None:
        super().__init__(message)
        self.variable = variable


class IncompleteCredentialError(ConfigError):
    """A credential record is missing a required field."""

    def __init__(self, message: str, *, ledger_id: str | None = None) -> None:
        super().__init__(message)
        self.ledger_id = ledger_id


class UnreadableResourceError(ConfigError):
    """A referenced certificate, key or fixture file cannot be read."""


class InconsistentConfigError(ConfigError):
    """A feature flag requires a resource that is not configured."""


class InvalidConditionError(InconsistentConfigError):
    """A notification signing key is not a valid condition."""


class UnknownPluginTypeError(ConnectorError, LookupError):
    """No plugin factory is registered for a credential type."""

    def __init__(self, plugin_type: str) -> None:
        super().__init__(f"no such plugin type: {plugin_type}")
        self.plugin_type = plugin_type


class UnknownLedgerError(ConnectorError, LookupError):
    """No handle exists for the requested ledger id."""


class RegistryStateError(ConnectorError):
    """Registry operation is not valid in its current state."""


class PluginConnectionError(ConnectorError):
    """A ledger plugin could not establish connectivity."""
