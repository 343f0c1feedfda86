"""Gallery account management: deletion of user and organization accounts."""
