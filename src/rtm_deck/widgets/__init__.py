"""Concrete widgets, one module per widget type."""
