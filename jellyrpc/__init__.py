"""Jellyfin → Discord Rich Presence bridge."""

__version__ = "1.0.0"
