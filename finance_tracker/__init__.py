"""
Finance Tracker - Source Package

Backend for a personal finance tracker: bank accounts, categories and
transactions, transfers between accounts, bulk recategorization and
dashboard analytics, served over a JSON HTTP API.

DESIGN PRINCIPLES:
1. Both legs of a transfer persist, or neither does
2. Fail early, fail visibly
3. No silent corrections
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
