"""Packaged data files (default fPort table)."""
