"""
ATM Ledger - Source Package

A terminal ledger manager: users log in, then open, inspect, update,
fund, close and hand over accounts kept in a flat text file.

DESIGN PRINCIPLES:
1. Validate first, write second
2. A rewrite either fully happens or leaves the ledger untouched
3. No silent corrections
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "ATM Ledger Team"
