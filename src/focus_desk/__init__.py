"""Personal task tree backed by a local SQLite store."""

__version__ = "0.1.0"
