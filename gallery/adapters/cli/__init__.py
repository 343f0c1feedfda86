"""CLI adapter for admin commands.

Maps command-line requests (delete, show, audit) onto the account
deletion port and repositories.
"""
