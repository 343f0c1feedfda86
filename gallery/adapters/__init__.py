"""External adapters for gallery account management.

This package contains all external dependencies (SQLite, HTTP collectors,
JSON snapshots, etc.) and provides implementations of the core port interfaces.

Adapter Organization:

- store/: In-memory gallery graph, repositories and JSON snapshots
- services/: Package, namespace, security and support services over the store
- audit/: Adapters for the audit trail (stdout, SQLite)
- telemetry/: Adapters for usage events (logging, HTTP)
- cli/: Command-line interface and admin commands
"""
