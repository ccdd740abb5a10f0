"""Storage and export layer.

This package persists book records in SQLite and renders them
as Hugo content for the SDK and CLI.
"""
