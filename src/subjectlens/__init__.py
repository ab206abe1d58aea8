"""Subject identity resolution and system discovery for privacy requests."""

__version__ = "0.1.0"
