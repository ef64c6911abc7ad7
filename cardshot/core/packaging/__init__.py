"""
Packaging Module
================

Streaming zip archives of rendered cards.
"""

from .archive import stream_archive, archive_bytes

__all__ = ["stream_archive", "archive_bytes"]
