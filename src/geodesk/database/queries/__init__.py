"""Query functions for Geodesk, one module per table."""
