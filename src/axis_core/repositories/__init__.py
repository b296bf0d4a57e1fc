"""Persistence adapters over SQLAlchemy sessions."""
