"""
Temporary on-disk spooling for uploaded files.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass

from fastapi import UploadFile

from recipe_backend.errors import PayloadTooLargeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
MEGABYTE = 1024 * 1024


def _describe_limit(max_bytes: int) -> str:
    if max_bytes >= MEGABYTE and max_bytes % MEGABYTE == 0:
        return f"{max_bytes // MEGABYTE} MB"
    return f"{max_bytes} byte"


@dataclass
class SpooledUpload:
    path: str
    original_name: str
    size: int

    def read_bytes(self) -> bytes:
        with open(self.path, "rb") as f:
            return f.read()

    def remove(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            logger.warning("Temporary upload %s already removed", self.path)


async def spool_upload(
    file: UploadFile, upload_dir: str, max_bytes: int
) -> SpooledUpload:
    """
    Copy an uploaded file into ``upload_dir`` and return a handle to it.

    Raises PayloadTooLargeError once more than ``max_bytes`` have been read;
    the partial file is removed before raising.
    """
    os.makedirs(upload_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(dir=upload_dir, prefix="upload-")
    size = 0
    try:
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise PayloadTooLargeError(
                        f"Video file exceeds the {_describe_limit(max_bytes)} limit."
                    )
                out.write(chunk)
    except BaseException:
        os.remove(path)
        raise
    return SpooledUpload(path=path, original_name=file.filename or "", size=size)
