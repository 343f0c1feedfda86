"""Audit trail adapters.

Implementations support multiple backends:
- stdout (human-readable terminal output)
- SQLite (persistent, queryable)
"""
