"""Command implementations for the gtdnota CLI."""
