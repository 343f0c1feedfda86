"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeUserRepositoryPort, FakeAccountDeleteRepositoryPort,
  FakeScopeRepositoryPort: Recording repositories
- FakeEntitiesContextPort: Transactions with commit/rollback flags
- FakePackageServicePort, FakePackageOwnershipPort: Package state in memory
- FakeReservedNamespacePort, FakeSecurityPolicyPort, FakeAuthenticationPort
- FakeSupportRequestPort: In-memory issues
- FakeAuditingPort, FakeTelemetryPort: Captured records and events
"""

from .audit import FakeAuditingPort, FakeTelemetryPort
from .packages import FakePackageOwnershipPort, FakePackageServicePort
from .repositories import (
    FakeAccountDeleteRepositoryPort,
    FakeEntitiesContextPort,
    FakeScopeRepositoryPort,
    FakeTransaction,
    FakeUserRepositoryPort,
)
from .security import FakeAuthenticationPort, FakeReservedNamespacePort, FakeSecurityPolicyPort
from .support import FakeSupportRequestPort

__all__ = [
    "FakeAccountDeleteRepositoryPort",
    "FakeAuditingPort",
    "FakeAuthenticationPort",
    "FakeEntitiesContextPort",
    "FakePackageOwnershipPort",
    "FakePackageServicePort",
    "FakeReservedNamespacePort",
    "FakeScopeRepositoryPort",
    "FakeSecurityPolicyPort",
    "FakeSupportRequestPort",
    "FakeTelemetryPort",
    "FakeTransaction",
    "FakeUserRepositoryPort",
]
