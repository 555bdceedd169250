"""Command-line interface for opsentry."""
