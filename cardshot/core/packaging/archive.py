"""
Archive Packager
================

Stream rendered cards into a deflate-compressed zip. Bytes are handed out as
each entry is appended, so the archive is never held in memory as a whole.
"""

import zipfile
from typing import Iterable, Iterator, List

from cardshot.config.logging import get_logger
from cardshot.core.errors import PackagingFailed
from cardshot.models.schemas import RenderedImage

logger = get_logger(__name__)


class _ChunkSink:
    """Write-only, non-seekable file object that buffers until drained."""

    def __init__(self) -> None:
        self._chunks: List[bytes] = []

    def write(self, data: bytes) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def stream_archive(images: Iterable[RenderedImage]) -> Iterator[bytes]:
    """
    Yield a zip archive of ``images`` chunk by chunk.

    One chunk follows each appended entry; the central directory comes last.
    Entries are named after ``RenderedImage.name`` and keep input order.

    Raises:
        PackagingFailed: If the encoder fails; bytes already yielded stay sent
    """
    sink = _ChunkSink()
    entries = 0
    try:
        # zipfile switches to data descriptors when the sink cannot seek.
        with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:  # type: ignore[arg-type]
            for image in images:
                archive.writestr(image.name, image.png_data)
                entries += 1
                chunk = sink.drain()
                logger.debug("Archive entry written", name=image.name, chunk_size=len(chunk))
                yield chunk
        tail = sink.drain()
        if tail:
            yield tail
    except Exception as e:
        logger.error("Archive packaging failed", entries_written=entries, error=str(e))
        raise PackagingFailed(f"Archive packaging failed: {e}") from e

    logger.info("Archive completed", entries=entries)


def archive_bytes(images: Iterable[RenderedImage]) -> bytes:
    """Collect the whole archive into one buffer."""
    return b"".join(stream_archive(images))
