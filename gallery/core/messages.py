"""User-facing status messages for account management operations."""

ACCOUNT_DELETE_SUCCESS = "The account:{username} was deleted successfully."
ACCOUNT_DELETE_FAIL = (
    "The account:{username} was not deleted. The operation failed with error: {error}"
)
ACCOUNT_ALREADY_DELETED = (
    "The account:{username} was already deleted. No action was performed."
)
ACCOUNT_DELETE_ORPHANED_PACKAGES = (
    "The account:{username} was not deleted. Deleting it would leave "
    "{count} package registration(s) without an owner."
)

__all__ = [
    "ACCOUNT_ALREADY_DELETED",
    "ACCOUNT_DELETE_FAIL",
    "ACCOUNT_DELETE_ORPHANED_PACKAGES",
    "ACCOUNT_DELETE_SUCCESS",
]
