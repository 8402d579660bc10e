"""Fixed-point amounts, threshold scripts, ledger data types and their binary encoding."""

__version__ = "0.1.0"