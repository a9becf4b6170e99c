"""Upload descriptors for files sent to volume servers."""

import mimetypes
import os
from dataclasses import dataclass
from typing import BinaryIO, Iterable, List


def guess_mime_type(file_name: str) -> str:
    """Guess a MIME type from the lower-cased extension, '' if unknown."""
    ext = os.path.splitext(file_name)[1].lower()
    if not ext:
        return ''
    return mimetypes.guess_type(f"file{ext}")[0] or ''


@dataclass
class UploadFile:
    """
    A file to upload and, once uploaded, its handle in the cluster.

    The reader stays owned by the caller; uploads only borrow it for the
    duration of one call. file_id, server and etag are filled in by a
    successful upload.
    """
    reader: BinaryIO
    file_name: str
    file_size: int
    mime_type: str = ''
    mod_time: int = 0  # epoch seconds, 0 when unknown
    collection: str = ''
    ttl: str = ''
    server: str = ''
    file_id: str = ''
    etag: str = ''

    @classmethod
    def from_reader(cls, reader: BinaryIO, file_name: str, file_size: int) -> 'UploadFile':
        """Wrap an open reader; file_name and file_size must be known."""
        return cls(
            reader=reader,
            file_name=file_name,
            file_size=file_size,
            mime_type=guess_mime_type(file_name)
        )

    @classmethod
    def from_path(cls, path: str) -> 'UploadFile':
        """
        Open a local file for upload.

        Args:
            path: Path of a regular file

        Returns:
            UploadFile with size, mtime and MIME type filled in

        Raises:
            OSError: If the file cannot be opened or stat'ed
        """
        fh = open(path, 'rb')
        try:
            stat = os.fstat(fh.fileno())
        except OSError:
            fh.close()
            raise

        file_name = os.path.basename(path)
        return cls(
            reader=fh,
            file_name=file_name,
            file_size=stat.st_size,
            mime_type=guess_mime_type(file_name),
            mod_time=int(stat.st_mtime)
        )

    def close(self) -> None:
        self.reader.close()

    def __enter__(self) -> 'UploadFile':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_upload_files(paths: Iterable[str]) -> List[UploadFile]:
    """
    Open several files at once.

    If any file fails to open, the ones already opened are closed and the
    error is re-raised.
    """
    files: List[UploadFile] = []
    try:
        for path in paths:
            files.append(UploadFile.from_path(path))
    except OSError:
        close_upload_files(files)
        raise
    return files


def close_upload_files(files: Iterable[UploadFile]) -> None:
    for upload_file in files:
        upload_file.close()


class LimitedReader:
    """File-like wrapper that stops returning data after limit bytes."""

    def __init__(self, reader: BinaryIO, limit: int):
        """
        Initialize the limited reader.

        Args:
            reader: Underlying binary reader
            limit: Maximum number of bytes to hand out
        """
        self._reader = reader
        self._remaining = limit

    def read(self, size: int = -1) -> bytes:
        if self._remaining <= 0:
            return b''
        if size is None or size < 0 or size > self._remaining:
            size = self._remaining
        chunk = self._reader.read(size)
        self._remaining -= len(chunk)
        return chunk
