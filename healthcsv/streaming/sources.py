"""
Input adapters for the streaming aggregator.

Everything the aggregator consumes is normalised into an async iterator of
chunks (bytes or str). Control returns to the event loop between chunks so
a slow upstream paces the tokenizer.
"""

import asyncio
import inspect
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Union

import aiohttp

from ..core.constants import DEFAULT_CHUNK_SIZE

logger = logging.getLogger(__name__)

Chunk = Union[bytes, str]


def check_source(source: Any) -> None:
    """
    Reject inputs iter_chunks cannot stream.

    Raises:
        TypeError: For raw documents (bytes/str) and non-iterable objects
    """
    if isinstance(source, (bytes, bytearray, str)):
        raise TypeError("Pass raw documents as a list of chunks or a file object")
    if not any(hasattr(source, name) for name in ("__aiter__", "read", "__iter__")):
        raise TypeError(f"Cannot stream chunks from {type(source).__name__}")


async def iter_chunks(source: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[Chunk]:
    """
    Iterate over the chunks of any supported input.

    Supported inputs:
    - async iterables of bytes/str (e.g. ``open_file_stream``)
    - binary or text file objects exposing ``read()``
    - sync iterables of bytes/str (a list of chunks, a generator...)

    Exceptions raised by the source propagate unchanged.
    """
    check_source(source)

    if hasattr(source, "__aiter__"):
        async for chunk in source:
            yield chunk
        return

    if hasattr(source, "read"):
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                return
            yield chunk
            await asyncio.sleep(0)

    for chunk in source:
        yield chunk
        await asyncio.sleep(0)


async def open_file_stream(path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Read a local export file in fixed-size chunks."""
    logger.debug(f"Opening {path} (chunk size: {chunk_size})")
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            yield chunk
            await asyncio.sleep(0)


async def open_url_stream(url: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """
    Stream a remote export over HTTP(S).

    Raises:
        aiohttp.ClientError: On connection failures or non-2xx responses
    """
    logger.info(f"Downloading export from {url}")

    timeout = aiohttp.ClientTimeout(total=None, sock_read=60)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.get(url) as response:
            response.raise_for_status()
            async for chunk in response.content.iter_chunked(chunk_size):
                yield chunk


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


async def close_source(source: Any) -> None:
    """Terminate an upstream source after a failed conversion."""
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        result = aclose()
        if inspect.isawaitable(result):
            await result
        return

    close = getattr(source, "close", None)
    if close is not None:
        close()
