"""Command line interface for torrentdeck."""
