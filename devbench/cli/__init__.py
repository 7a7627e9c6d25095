"""Command-line interface for devbench."""
