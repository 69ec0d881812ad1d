"""Streaming ingestion and field normalization of biomedical collections."""

__version__ = "0.1.0"
