"""toolwatch — health monitor for external developer-tool status pages."""

__version__ = "0.1.0"
