"""Self-healing integrity watchdog for a shared key-value store."""

__version__ = "1.0.0"
