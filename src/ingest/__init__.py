"""Archive ingestion pipeline.

This package opens archives, extracts FictionBook metadata, and
fans entries out to worker threads that upsert into the book store.
"""
