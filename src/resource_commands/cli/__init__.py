"""CLI for resource-commands (``resource-commands`` entry point)."""
