"""Domain layer for ledgerflow.

Services are imported from their own modules (for example
``ledgerflow.domain.ledger.LedgerEngine``); this package stays import-free so
the database layer can depend on ``ledgerflow.domain.entities`` without a cycle.
"""
