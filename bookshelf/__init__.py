"""Reading progress ledger and statistics for Markdown book notes."""

__version__ = "1.0.0"
