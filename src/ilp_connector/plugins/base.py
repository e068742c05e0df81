"""Ledger plugin capability interface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar

from ilp_connector.credentials import AdminCredential, LedgerCredential


@dataclass(frozen=True)
class AutoFundSettings:
    admin: AdminCredential | None
    connector: str | None


@dataclass(frozen=True)
class PluginOptions:
    ledger_id: str
    credentials: LedgerCredential
    log: logging.Logger
    debug_reply_notifications: bool = False
    debug_autofund: AutoFundSettings | None = None


class LedgerPlugin(ABC):
    """One live session with a ledger."""

    TYPE: ClassVar[str]

    def __init__(self, options: PluginOptions) -> None:
        self.id = options.ledger_id
        self.credentials = options.credentials
        self.log = options.log
        self.debug_reply_notifications = options.debug_reply_notifications
        self.debug_autofund = options.debug_autofund

    @property
    def account(self) -> str | None:
        return self.credentials.account

    @abstractmethod
    def connect(self) -> None: ...

    @abstractmethod
    def disconnect(self) -> None: ...

    @abstractmethod
    def is_connected(self) -> bool: ...
