"""Command line interface for mldata."""
