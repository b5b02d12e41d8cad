"""Components for relaying logs and metrics and for binding syslog drains in a store."""

__version__ = "0.1.0"