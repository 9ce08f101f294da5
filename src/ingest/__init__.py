"""Dataset ingestion pipeline.

This module decodes raw archives and validates their entries.
It prepares immutable datasets for the store layer.
"""
