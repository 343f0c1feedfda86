"""Test suite for gallery account management.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Tests against real SQLite files, JSON snapshots and mocked HTTP
   - Validates adapter behavior and error handling

3. fakes/: Port implementations for testing
   - Recording implementations of every driven port
   - Used by core unit tests
"""
