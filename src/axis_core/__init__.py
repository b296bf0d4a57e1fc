"""Ledger, release scheduling and anticipation backend."""
