"""Ledger list parsing and trading pair generation."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Sequence

from ilp_connector.env import EnvironmentSource
from ilp_connector.errors import MalformedConfigError


@dataclass(frozen=True)
class LedgerDescriptor:
    currency: str
    ledger: str

    @classmethod
    def parse(cls, token: object, *, variable: str) -> "LedgerDescriptor":
        if not isinstance(token, str):
            raise MalformedConfigError(
                f"{variable} entries must be strings of the form currency@ledger",
                variable=variable,
            )
        currency, sep, ledger = token.partition("@")
        if not sep:
            raise MalformedConfigError(
                f"{variable} entry {token!r} is missing '@'", variable=variable
            )
        return cls(currency=currency, ledger=ledger)

    def __str__(self) -> str:
        return f"{self.currency}@{self.ledger}"


@dataclass(frozen=True)
class TradingPair:
    source: LedgerDescriptor
    destination: LedgerDescriptor

    def to_list(self) -> list[str]:
        return [str(self.source), str(self.destination)]


def parse_ledgers(env: EnvironmentSource) -> tuple[LedgerDescriptor, ...]:
    # e.g. ["USD@http://usd-ledger.example","EUR@http://eur-ledger.example/some/path"]
    variable = env.variable("LEDGERS")
    raw = env.get_json("LEDGERS", [])
    if not isinstance(raw, list):
        raise MalformedConfigError(f"{variable} must be a JSON array", variable=variable)
    return tuple(LedgerDescriptor.parse(token, variable=variable) for token in raw)


def generate_default_pairs(ledgers: Sequence[LedgerDescriptor]) -> tuple[TradingPair, ...]:
    return tuple(TradingPair(source, destination) for source, destination in combinations(ledgers, 2))


def parse_pairs(raw: object, *, variable: str) -> tuple[TradingPair, ...]:
    if not isinstance(raw, list):
        raise MalformedConfigError(f"{variable} must be a JSON array", variable=variable)
    pairs = []
    for entry in raw:
        if not isinstance(entry, list) or len(entry) != 2:
            raise MalformedConfigError(
                f"{variable} entries must be [source, destination] arrays", variable=variable
            )
        source, destination = entry
        pairs.append(
            TradingPair(
                LedgerDescriptor.parse(source, variable=variable),
                LedgerDescriptor.parse(destination, variable=variable),
            )
        )
    return tuple(pairs)


def resolve_trading_pairs(
    env: EnvironmentSource, ledgers: Sequence[LedgerDescriptor]
) -> tuple[TradingPair, ...]:
    # [["USD@http://usd-ledger.example","EUR@http://eur-ledger.example"],...]
    variable = env.variable("PAIRS")
    raw = env.get_json("PAIRS")
    if raw is None:
        return generate_default_pairs(ledgers)
    explicit = parse_pairs(raw, variable=variable)
    return explicit or generate_default_pairs(ledgers)
