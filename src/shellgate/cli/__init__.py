"""Command-line interface for shellgate."""
