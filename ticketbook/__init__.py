"""Ticket booking API with a concurrency-safe booking ledger."""

__version__ = "1.0.0"
