"""Command line interface for hera."""
