"""Reader Lite: offline-tolerant RSS/Atom reader."""

__version__ = "1.0.0"
