"""Hotel inventory and reservation ledger."""

__version__ = "0.1.0"
