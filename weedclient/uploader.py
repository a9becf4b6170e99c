"""Two-phase write path: assign a file ID on the master, then upload."""

from typing import Any, Mapping, Optional, Tuple

from pydantic import ValidationError

from common.constants import (
    DEFAULT_MAX_FILE_SIZE_BYTES,
    DEFAULT_MIME_TYPE,
    DIR_ASSIGN_PATH,
    PARAM_COLLECTION,
    PARAM_MOD_TIME,
    PARAM_TTL,
    SUBMIT_PATH
)
from common.logging_config import get_logger
from weedclient.exceptions import (
    AssignDecodeError,
    AssignFailedError,
    DecodeError,
    SizeMismatchError,
    UploadFailedError
)
from weedclient.models import AssignResult, SubmitResult, UploadResult
from weedclient.transport import HttpTransport, server_url
from weedclient.upload_file import LimitedReader, UploadFile

logger = get_logger(__name__)


def write_args(collection: str = '', ttl: str = '') -> dict:
    """Build the collection/ttl query arguments shared by writes."""
    args = {}
    if collection:
        args[PARAM_COLLECTION] = collection
    if ttl:
        args[PARAM_TTL] = ttl
    return args


class Uploader:
    """Reserves file IDs on the master and streams content to volume servers."""

    def __init__(
        self,
        transport: HttpTransport,
        master_url: str,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE_BYTES
    ):
        self.transport = transport
        self.master_url = master_url.rstrip('/')
        self.max_file_size = max_file_size

    def assign(self, args: Optional[Mapping[str, Any]] = None) -> AssignResult:
        """
        Reserve a file ID and a target volume server.

        Args:
            args: Assign arguments (count, collection, replication,
                dataCenter, ttl)

        Returns:
            AssignResult with fid and url

        Raises:
            AssignDecodeError: If the body cannot be decoded
            AssignFailedError: If no file ID was reserved
        """
        body = self.transport.get(
            f"{self.master_url}{DIR_ASSIGN_PATH}", params=args,
            accept_client_errors=True
        )

        try:
            result = AssignResult.model_validate_json(body)
        except ValidationError as e:
            raise AssignDecodeError(f"{DIR_ASSIGN_PATH} result JSON unmarshal error: {e}", body) from e

        if result.count == 0 or result.error:
            raise AssignFailedError(result.error or "no file id assigned")

        logger.debug(f"Assigned file id {result.fid} on {result.url} [count={result.count}]")
        return result

    def upload(self, upload_file: UploadFile) -> AssignResult:
        """
        Assign a file ID and upload the file to the assigned server.

        On success upload_file.file_id, server and etag are set. On a size
        mismatch file_id and server are set but etag is left empty.

        Args:
            upload_file: Open upload descriptor; its reader is not closed

        Returns:
            The AssignResult used for the upload

        Raises:
            AssignFailedError, AssignDecodeError: If the assign step fails
            TransportError: If the volume server cannot be reached
            UploadFailedError: If the volume server reports an error
            SizeMismatchError: If the stored size differs from file_size
        """
        assign_result = self.assign(write_args(upload_file.collection, upload_file.ttl))

        args = write_args(upload_file.collection, upload_file.ttl)
        if upload_file.mod_time:
            args[PARAM_MOD_TIME] = str(upload_file.mod_time)

        upload_file.file_id = assign_result.fid
        upload_file.server = assign_result.url
        if not upload_file.mime_type:
            upload_file.mime_type = DEFAULT_MIME_TYPE

        body = self.transport.upload(
            server_url(self.master_url, assign_result.url, upload_file.file_id),
            upload_file.file_name,
            LimitedReader(upload_file.reader, self.max_file_size),
            upload_file.mime_type,
            params=args
        )

        try:
            result = UploadResult.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"upload result JSON unmarshal error: {e}", body) from e

        if result.error:
            raise UploadFailedError(result.error)
        if result.size != upload_file.file_size:
            raise SizeMismatchError(upload_file.file_size, result.size)

        upload_file.etag = result.etag
        logger.info(
            f"Uploaded {upload_file.file_name} [fid={upload_file.file_id}, "
            f"server={upload_file.server}, size={result.size}]"
        )
        return assign_result

    def upload_path(self, path: str, collection: str = '', ttl: str = '') -> Tuple[AssignResult, UploadFile]:
        """
        Upload a local file; the file is closed before returning.

        Returns:
            Tuple of (AssignResult, UploadFile with file_id and etag)
        """
        with UploadFile.from_path(path) as upload_file:
            upload_file.collection, upload_file.ttl = collection, ttl
            assign_result = self.upload(upload_file)
        return assign_result, upload_file

    def submit(self, path: str, collection: str = '', ttl: str = '') -> SubmitResult:
        """
        Post a local file straight to the master, which assigns and stores it.

        Raises:
            TransportError: If the master cannot be reached
            DecodeError: If the body is not a submit result
            UploadFailedError: If the master reports an error
        """
        with UploadFile.from_path(path) as upload_file:
            body = self.transport.upload(
                f"{self.master_url}{SUBMIT_PATH}",
                upload_file.file_name,
                upload_file.reader,
                upload_file.mime_type or DEFAULT_MIME_TYPE,
                params=write_args(collection, ttl)
            )

        try:
            result = SubmitResult.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"{SUBMIT_PATH} result JSON unmarshal error: {e}", body) from e

        if result.error:
            raise UploadFailedError(result.error)

        logger.info(f"Submitted {result.file_name} [fid={result.fid}, size={result.size}]")
        return result
