"""Background task that fetches and stores off-chain asset metadata."""

__version__ = "0.1.0"
