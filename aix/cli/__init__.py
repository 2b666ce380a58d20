"""Command-line interface for aix."""
