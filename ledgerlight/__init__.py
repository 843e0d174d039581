"""ledgerlight – quorum-verified light client for a BFT ledger."""

__version__ = "0.1.0"
