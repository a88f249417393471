"""Streaming downloads with progress reporting.

The body is copied one chunk at a time, in the order received. After each
chunk the progress callback gets ``(len(chunk), total)``, where total is
the declared Content-Length or -1. One last ``(0, total)`` call marks the
end of the transfer.
"""

import logging
from typing import BinaryIO, Callable, Optional

from tqdm import tqdm

from awaithttp.http.ranges import UNKNOWN_SIZE
from awaithttp.models.request import DEFAULT_CHUNK_SIZE, ResponseOutcome

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def no_progress(bytes_read: int, total: int) -> None:
    pass


async def stream_to(
    out: BinaryIO,
    response: ResponseOutcome,
    progress: Optional[ProgressCallback] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> int:
    """Copy the response body into `out`, reporting progress per chunk.

    Both `response` and `out` are closed when this returns or raises.

    Args:
        out: Writable binary stream
        response: Response whose body has not been read yet
        progress: Called with (bytes_this_chunk, total) after every chunk
        chunk_size: Maximum bytes read per chunk

    Returns:
        Number of bytes written
    """
    progress = progress or no_progress
    written = 0
    try:
        total = response.content_length
        async for chunk in response.iter_chunks(chunk_size):
            out.write(chunk)
            written += len(chunk)
            progress(len(chunk), total)
        progress(0, total)
    finally:
        try:
            response.close()
        finally:
            out.close()

    logger.debug(f"Downloaded {written} bytes from {response.url}")
    return written


def tqdm_progress(bar: tqdm) -> ProgressCallback:
    """Adapt a tqdm progress bar to the download progress callback.

    The bar's total is filled in from the first report with a known size.
    """

    def update(bytes_read: int, total: int) -> None:
        if bar.total is None and total != UNKNOWN_SIZE:
            bar.total = total
            bar.refresh()
        if bytes_read:
            bar.update(bytes_read)

    return update
