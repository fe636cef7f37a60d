"""Utility functions for the plugin host."""

from .atomic_write import atomic_write_text, read_text_exact

__all__ = [
    'atomic_write_text',
    'read_text_exact',
]
