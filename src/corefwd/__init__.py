"""CoreDNS cross-cluster forward rule manager."""

__version__ = "0.1.0"
