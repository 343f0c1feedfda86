"""Gallery store adapters.

- memory: In-memory graph with unit-of-work repositories and transactions
- snapshot: JSON load/dump of the graph
"""
