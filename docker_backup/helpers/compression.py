"""
Chunked gzip helpers for image archives.

Images are saved by `docker save` as plain tar; these helpers stream the
file through the standard gzip module so memory use stays flat regardless
of image size.
"""

import gzip
from pathlib import Path
from typing import BinaryIO, Union

from .constants import COPY_CHUNK_SIZE
from .logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


def _copy_chunks(source: BinaryIO, target: BinaryIO, chunk_size: int) -> int:
    copied = 0
    for chunk in iter(lambda: source.read(chunk_size), b""):
        target.write(chunk)
        copied += len(chunk)
    return copied


def compress_file(source: PathLike, target: PathLike, chunk_size: int = COPY_CHUNK_SIZE) -> int:
    """
    Gzip `source` into `target`.

    Returns:
        Number of uncompressed bytes read
    """
    with open(source, "rb") as src, gzip.open(target, "wb") as dst:
        copied = _copy_chunks(src, dst, chunk_size)
    logger.debug(f"Compressed {copied} bytes: {source} -> {target}")
    return copied


def decompress_file(source: PathLike, target: PathLike, chunk_size: int = COPY_CHUNK_SIZE) -> int:
    """
    Gunzip `source` into `target`.

    Returns:
        Number of decompressed bytes written

    Raises:
        gzip.BadGzipFile, EOFError: source is not valid / truncated gzip
    """
    with gzip.open(source, "rb") as src, open(target, "wb") as dst:
        copied = _copy_chunks(src, dst, chunk_size)
    logger.debug(f"Decompressed {copied} bytes: {source} -> {target}")
    return copied
