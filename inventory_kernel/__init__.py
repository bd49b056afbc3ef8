"""
Inventory Kernel - stock ledger and booking engine

An append-only stock journal with:
- Atomic multi-line bookings against projects
- Non-negative stock enforced at write time
- Materialized balances kept in the same transaction as the journal
- Deletion modelled as reversal (compensating entries)
"""

__version__ = "0.1.0"
