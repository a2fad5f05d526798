"""
Group Ledger - Source Package

Shared expense tracking for households and small groups.
Users sign in, create or join groups, record income and expenses
against categories and look at totals, breakdowns and budgets.

DESIGN PRINCIPLES:
1. Every backend call is a single request/response
2. Aggregation happens in memory, after the round trip
3. Errors are surfaced, never silently corrected
4. Storage and auth backends are swappable
"""

__version__ = "1.0.0"
__author__ = "Group Ledger Team"
