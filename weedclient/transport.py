"""HTTP transport for master and volume server requests."""

from email.message import Message
from typing import Any, BinaryIO, Callable, Iterator, Mapping, Optional

import httpx

from common.constants import DEFAULT_TIMEOUT_SECONDS, DOWNLOAD_CHUNK_SIZE_BYTES
from common.logging_config import get_logger
from weedclient.exceptions import TransportError

logger = get_logger(__name__)

Params = Optional[Mapping[str, Any]]


def server_url(base_url: str, server: str, path: str = '') -> str:
    """
    Build a URL on another server, reusing the scheme of base_url.

    Args:
        base_url: URL whose scheme is kept (usually the master URL)
        server: Target "host:port"
        path: Resource path, with or without a leading slash

    Returns:
        Absolute URL string
    """
    scheme = httpx.URL(base_url).scheme or 'http'
    return f"{scheme}://{server}/{path.lstrip('/')}"


def _file_name_from_disposition(value: str) -> str:
    if not value:
        return ''
    message = Message()
    message['content-disposition'] = value
    return message.get_filename() or ''


class HttpTransport:
    """
    Thin wrapper over httpx.Client used by every cluster call.

    Network failures and server errors (5xx) become TransportError. Client
    errors (4xx) are raised too unless the caller asks for the body, since
    the master and volume servers explain many 4xx answers in a JSON
    "error" field. No retries happen at this layer.
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        """
        Initialize transport.

        Args:
            client: Injected httpx client; the transport does not close it
            timeout: Timeout for a client created here
        """
        self._owns_client = client is None
        self.client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def get(self, url: str, params: Params = None, accept_client_errors: bool = False) -> bytes:
        return self._send('GET', url, params=params, accept_client_errors=accept_client_errors)

    def delete(self, url: str, params: Params = None) -> bytes:
        return self._send('DELETE', url, params=params)

    def upload(
        self,
        url: str,
        file_name: str,
        reader: BinaryIO,
        mime_type: str,
        params: Params = None,
        accept_client_errors: bool = True
    ) -> bytes:
        """
        POST a multipart body with a single "file" field.

        Args:
            url: Target URL
            file_name: File name sent in the part header
            reader: Binary file-like object, read until EOF
            mime_type: Content type of the part
            params: Query parameters
            accept_client_errors: Return 4xx bodies instead of raising

        Returns:
            Raw response body
        """
        files = {'file': (file_name, reader, mime_type)}
        return self._send(
            'POST', url, params=params, files=files,
            accept_client_errors=accept_client_errors
        )

    def download(
        self,
        url: str,
        consumer: Callable[[Iterator[bytes]], Any],
        params: Params = None
    ) -> str:
        """
        Stream a GET response body into consumer.

        The response is closed on every exit path, including failures while
        the consumer is reading.

        Args:
            url: File URL on a volume server
            consumer: Called once with an iterator over body chunks
            params: Query parameters

        Returns:
            File name from Content-Disposition, or '' when absent

        Raises:
            TransportError: On network failure or error status
        """
        logger.debug(f"Making request: GET {url} (stream)")
        try:
            with self.client.stream('GET', url, params=_clean(params)) as response:
                if response.status_code >= 400:
                    body = response.read()
                    raise TransportError(
                        f"GET {url} failed with status {response.status_code}",
                        status_code=response.status_code,
                        body=body
                    )
                file_name = _file_name_from_disposition(
                    response.headers.get('content-disposition', '')
                )
                consumer(response.iter_bytes(DOWNLOAD_CHUNK_SIZE_BYTES))
                return file_name
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {type(e).__name__}: {e}") from e

    def _send(
        self,
        method: str,
        url: str,
        params: Params = None,
        accept_client_errors: bool = False,
        **kwargs
    ) -> bytes:
        logger.debug(f"Making request: {method} {url}")
        try:
            response = self.client.request(method, url, params=_clean(params), **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {type(e).__name__}: {e}") from e

        logger.debug(f"Response received: {method} {url} status={response.status_code}")

        status = response.status_code
        if status >= 500 or (status >= 400 and not accept_client_errors):
            raise TransportError(
                f"{method} {url} failed with status {status}",
                status_code=status,
                body=response.content
            )

        return response.content


def _clean(params: Params) -> Optional[dict]:
    if params is None:
        return None
    return {key: value for key, value in params.items() if value is not None and value != ''}
