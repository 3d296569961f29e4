"""A persistent work queue with named channels, payload helpers, and an HTTP client for a queue server."""

__version__ = "0.0.2"
__all__ = ["client", "payload", "queue"]