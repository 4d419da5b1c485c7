"""Shared utilities for torrentdeck."""
