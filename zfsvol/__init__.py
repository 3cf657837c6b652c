"""ZFS-backed volume plugin for Docker."""

__version__ = "0.3.0"
