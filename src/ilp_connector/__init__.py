"""ilp-connector configuration resolver and ledger plugin registry."""

from ilp_connector.config import (
    ExpiryConfig,
    FeatureFlags,
    ResolvedConfig,
    ServerConfig,
    TestFixtures,
    assemble_config,
    load_connector_config,
)
from ilp_connector.credentials import AdminCredential, LedgerCredential, migrate_account_uri
from ilp_connector.crypto.condition import validate_condition
from ilp_connector.env import EnvironmentSource
from ilp_connector.errors import (
    ConfigError,
    ConnectorError,
    IncompleteCredentialError,
    InconsistentConfigError,
    InvalidConditionError,
    MalformedConfigError,
    PluginConnectionError,
    RegistryStateError,
    UnknownLedgerError,
    UnknownPluginTypeError,
    UnreadableResourceError,
)
from ilp_connector.health import STATUS_DEGRADED, STATUS_NOT_OK, STATUS_OK, HealthStatus
from ilp_connector.multiledger import LedgerPluginRegistry
from ilp_connector.notifications import NotificationPolicy
from ilp_connector.pairs import LedgerDescriptor, TradingPair, generate_default_pairs
from ilp_connector.plugins import LedgerPlugin, PluginFactoryRegistry, PluginOptions, default_plugins
from ilp_connector.validate import validate_environment

__all__ = [
    "ConnectorError",
    "ConfigError",
    "MalformedConfigError",
    "IncompleteCredentialError",
    "UnreadableResourceError",
    "InconsistentConfigError",
    "InvalidConditionError",
    "UnknownPluginTypeError",
    "UnknownLedgerError",
    "RegistryStateError",
    "PluginConnectionError",
    "EnvironmentSource",
    "LedgerCredential",
    "AdminCredential",
    "migrate_account_uri",
    "NotificationPolicy",
    "validate_condition",
    "LedgerDescriptor",
    "TradingPair",
    "generate_default_pairs",
    "validate_environment",
    "ExpiryConfig",
    "FeatureFlags",
    "ServerConfig",
    "ResolvedConfig",
    "TestFixtures",
    "assemble_config",
    "load_connector_config",
    "LedgerPluginRegistry",
    "LedgerPlugin",
    "PluginOptions",
    "PluginFactoryRegistry",
    "default_plugins",
    "HealthStatus",
    "STATUS_OK",
    "STATUS_NOT_OK",
    "STATUS_DEGRADED",
]
