"""
File attachment wrapper used by uploads and batched calls.
"""

from __future__ import annotations

import mimetypes
import os
import typing as t
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadableIO:
    """
    A file-like payload with the metadata needed for a multipart upload.

    Parameters
    ----------
    io_or_path : typing.BinaryIO | str | os.PathLike[str]
        Open binary file object, or a path to a file on disk.
    content_type : str | None, optional
        MIME type; guessed from the filename when omitted.
    filename : str | None, optional
        Filename sent with the part; derived from the path or file object when omitted.
    """

    def __init__(
        self,
        io_or_path: t.BinaryIO | str | os.PathLike[str],
        content_type: str | None = None,
        filename: str | None = None,
    ) -> None:
        if isinstance(io_or_path, (str, os.PathLike)):
            path = Path(io_or_path)
            if not path.is_file():
                raise ValueError(f"Cannot upload '{path}': not a file")
            self._path: Path | None = path
            self._io: t.BinaryIO | None = None
            default_name = path.name
        elif hasattr(io_or_path, "read"):
            self._path = None
            self._io = io_or_path
            default_name = Path(str(getattr(io_or_path, "name", "upload"))).name
        else:
            raise TypeError(
                f"UploadableIO expects a path or a readable file object, got {type(io_or_path).__name__}"
            )

        self.filename = filename or default_name
        self.content_type = (
            content_type or mimetypes.guess_type(self.filename)[0] or DEFAULT_CONTENT_TYPE
        )

    def read(self) -> bytes:
        if self._path is not None:
            return self._path.read_bytes()
        stream = t.cast(t.BinaryIO, self._io)
        # requeued calls read the stream again
        if callable(getattr(stream, "seekable", None)) and stream.seekable():
            stream.seek(0)
        return stream.read()

    def to_upload_tuple(self) -> tuple[str, bytes, str]:
        """
        Build the ``(filename, content, content_type)`` tuple httpx expects for a file part.
        """
        return self.filename, self.read(), self.content_type

    def __repr__(self) -> str:
        return f"UploadableIO(filename={self.filename!r}, content_type={self.content_type!r})"


def is_binary_content(*, value: t.Any) -> bool:
    """
    Check whether an argument value should travel as a file attachment.

    Parameters
    ----------
    value : typing.Any
        Call argument value.

    Returns
    -------
    bool
        ``True`` for ``UploadableIO`` instances and readable binary file objects.
    """
    if isinstance(value, UploadableIO):
        return True
    if isinstance(value, (str, bytes, bytearray)):
        return False
    return hasattr(value, "read") and callable(value.read)


def to_uploadable(*, value: t.Any) -> UploadableIO:
    return value if isinstance(value, UploadableIO) else UploadableIO(value)
