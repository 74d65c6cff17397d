"""Command-line client for the bridge service."""
