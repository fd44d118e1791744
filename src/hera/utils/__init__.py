"""Utility modules for hera."""
