"""dupscan: duplicate detection for tabular datasets and stored files."""

__version__ = "0.1.0"
