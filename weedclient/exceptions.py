"""Custom exception classes for the volume client."""

from typing import Optional


class WeedClientError(Exception):
    """
    Base exception class for all client errors.
    """
    pass


class InvalidFileIdError(WeedClientError):
    """
    Raised when a file identifier does not split into volume ID and key.
    """

    def __init__(self, file_id: str):
        super().__init__(f"Invalid fileID {file_id!r}")
        self.file_id = file_id


class FileNotFoundError(WeedClientError):
    """
    Raised when the master reports no locations for a volume.
    """
    pass


class LookupFailedError(WeedClientError):
    """
    Raised when the master answers a lookup with an explicit error.
    """
    pass


class AssignFailedError(WeedClientError):
    """
    Raised when the master reserves no file ID.
    """
    pass


class UploadFailedError(WeedClientError):
    """
    Raised when a volume server answers an upload with an explicit error.
    """
    pass


class DecodeError(WeedClientError):
    """
    Raised when a response body is not valid JSON of the expected shape.
    """

    def __init__(self, message: str, body: bytes = b''):
        text = body.decode('utf-8', errors='replace')
        super().__init__(f"{message}, json:{text}")
        self.body = body


class AssignDecodeError(DecodeError):
    """
    Raised when the /dir/assign body cannot be decoded.
    """
    pass


class SizeMismatchError(WeedClientError):
    """
    Raised when the stored size differs from the declared upload size.
    """

    def __init__(self, declared: int, stored: int):
        super().__init__(f"wrong upload size: declared {declared}, stored {stored}")
        self.declared = declared
        self.stored = stored


class TransportError(WeedClientError):
    """
    Raised when an HTTP request fails at the network level or with an
    error status.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: bytes = b''):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
