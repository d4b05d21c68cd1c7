"""Command line interface for Guardian."""
