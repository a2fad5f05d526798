"""Queries package."""

from groupledger.queries.aggregator import LedgerAggregator

__all__ = ["LedgerAggregator"]
