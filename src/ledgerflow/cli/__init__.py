"""CLI interface for ledgerflow."""
