"""Channel Accounts: user-account and session-token backend."""

__version__ = "1.0.0"
