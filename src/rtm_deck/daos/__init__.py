"""Concrete DAOs, one module per external API."""
