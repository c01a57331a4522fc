"""Realtime model protocol and connection."""
