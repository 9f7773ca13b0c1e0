"""Resume ingestion, extraction and fit-analysis pipeline."""

__version__ = "1.0.0"
