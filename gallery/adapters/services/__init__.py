"""Gallery service adapters operating on the in-memory store."""
