"""
Bliq Money - Source Package

A personal finance tracker: income and expense entries per calendar month,
balances carried across months, and an optional AI-written summary.

DESIGN PRINCIPLES:
1. The ledger engine is pure and synchronous
2. Totals are derived on every read, never stored
3. A mutation either fully applies or does not apply at all
4. Every mutation is audited and followed by a full snapshot save
5. Storage, auth and advice are swappable collaborators
"""

__version__ = "1.0.0"
__author__ = "Bliq Money Team"
