"""Daily OMIE price watcher: ingest, deduplicate, trend and alert."""

__version__ = "0.1.0"
