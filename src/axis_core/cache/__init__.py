"""Shared cache, distributed lock and single-flight primitives."""
