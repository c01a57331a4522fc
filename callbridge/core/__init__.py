"""Audio primitives and configuration helpers."""
