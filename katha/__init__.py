"""
Katha - Source Package

A single-user personal finance tracker: dated income/expense
transactions, persisted locally, with monthly totals and a
day-by-day ledger.

DESIGN PRINCIPLES:
1. One explicit store, no hidden global state
2. Persistence backend is swappable
3. Aggregates are always recomputed from the full list
4. Every mutation is auditable
"""

__version__ = "1.0.0"
__author__ = "Katha Team"
