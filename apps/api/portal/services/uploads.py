from __future__ import annotations

import re
import tempfile
from pathlib import Path
from typing import BinaryIO

from portal.services.exceptions import InvalidArgumentError

FILENAME_SANITIZE_RE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(raw_filename: str | None, fallback: str = "file") -> str:
    candidate = (raw_filename or fallback).strip()
    candidate = Path(candidate).name
    candidate = FILENAME_SANITIZE_RE.sub("_", candidate)
    candidate = candidate.strip("._") or fallback
    if len(candidate) > 200:
        stem = Path(candidate).stem[:160] or fallback
        suffix = Path(candidate).suffix[:20]
        candidate = f"{stem}{suffix}"
    return candidate


def buffer_upload(fileobj: BinaryIO, max_bytes: int) -> tempfile.SpooledTemporaryFile:
    """Copy an upload into a spooled buffer, enforcing ``max_bytes``.

    The caller owns the returned buffer and must close it.
    """
    total_size = 0
    buffered = tempfile.SpooledTemporaryFile(max_size=8 * 1024 * 1024, mode="w+b")
    try:
        while True:
            chunk = fileobj.read(1024 * 1024)
            if not chunk:
                break
            total_size += len(chunk)
            if total_size > max_bytes:
                raise InvalidArgumentError(f"file exceeds max size of {max_bytes} bytes")
            buffered.write(chunk)
    except Exception:
        buffered.close()
        raise

    if total_size == 0:
        buffered.close()
        raise InvalidArgumentError("no file uploaded")

    buffered.seek(0)
    return buffered
