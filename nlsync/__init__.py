"""Newsletter segmentation and idempotent article ingestion."""

__version__ = "0.1.0"
