"""
Client for a master/volume-server blob cluster.

The master is the directory authority: it knows which volume servers hold
which volumes and hands out new file IDs. Volume servers store the bytes.
Reads and deletes first resolve the file's volume to its servers (through
the location cache when possible), then talk to a volume server directly.
Writes ask the master to assign a file ID first, then upload to the
assigned server.

Typical use::

    with WeedClient("http://master:9333") as client:
        assign_result, upload_file = client.upload_file("photo.jpg")
        client.download(upload_file.file_id, consumer)
        client.delete_file(upload_file.file_id)
"""

from typing import Any, Callable, Iterator, Mapping, Optional, Tuple, TypeVar

import httpx
from pydantic import ValidationError

from common.constants import (
    CLUSTER_STATUS_PATH,
    COL_DELETE_PATH,
    DEFAULT_MAX_FILE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    DIR_STATUS_PATH,
    LOCATION_CACHE_SWEEP_INTERVAL_SECONDS,
    LOCATION_CACHE_TTL_SECONDS,
    MAX_LOCATION_ATTEMPTS,
    PARAM_COLLECTION,
    PARAM_COUNT,
    PARAM_DATA_CENTER,
    PARAM_GARBAGE_THRESHOLD,
    PARAM_REPLICATION,
    VOL_GROW_PATH,
    VOL_VACUUM_PATH
)
from common.logging_config import get_logger
from weedclient.config import Config
from weedclient.exceptions import DecodeError, TransportError
from weedclient.location_cache import LocationCache
from weedclient.models import (
    AssignResult,
    ClusterStatus,
    LookupResult,
    SubmitResult,
    SystemStatus,
    VolumeLocations
)
from weedclient.resolver import VolumeResolver
from weedclient.selection import READ_PICK, WRITE_PICK
from weedclient.transport import HttpTransport, server_url
from weedclient.upload_file import UploadFile
from weedclient.uploader import Uploader, write_args

logger = get_logger(__name__)

Args = Optional[Mapping[str, Any]]
T = TypeVar('T')


def format_threshold(threshold: float) -> str:
    """Shortest decimal form of a float, without a trailing ".0"."""
    text = repr(float(threshold))
    return text[:-2] if text.endswith('.0') else text


class WeedClient:
    """Public entry point for cluster operations."""

    def __init__(
        self,
        master_url: str,
        http_client: Optional[httpx.Client] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE_BYTES,
        cache_ttl: float = LOCATION_CACHE_TTL_SECONDS,
        sweep_interval: float = LOCATION_CACHE_SWEEP_INTERVAL_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS
    ):
        """
        Initialize client.

        Args:
            master_url: Master base URL (e.g., "http://localhost:9333")
            http_client: Injected httpx client; left open by close()
            max_file_size: Upload size cap in bytes
            cache_ttl: Seconds a resolved volume location stays cached
            sweep_interval: Seconds between expired-entry sweeps
            timeout: Request timeout when no client is injected
        """
        parsed = httpx.URL(master_url)
        if not parsed.scheme or not parsed.host:
            raise ValueError(f"Invalid master URL: {master_url!r}")

        self.master_url = master_url.rstrip('/')
        self.transport = HttpTransport(http_client, timeout=timeout)
        self.cache = LocationCache(ttl=cache_ttl, sweep_interval=sweep_interval)
        self.resolver = VolumeResolver(self.transport, self.master_url, self.cache)
        self.uploader = Uploader(self.transport, self.master_url, max_file_size)
        self.cache.start()
        logger.info(f"Initialized WeedClient [master_url={self.master_url}]")

    @classmethod
    def from_config(cls, config: Config, http_client: Optional[httpx.Client] = None) -> 'WeedClient':
        return cls(
            config.get_master_url(),
            http_client=http_client,
            max_file_size=config.get_max_file_size(),
            cache_ttl=config.get_cache_ttl(),
            sweep_interval=config.get_cache_sweep_interval(),
            timeout=config.get_timeout()
        )

    def close(self) -> None:
        """Stop the cache sweeper, drop cached locations, release the transport."""
        self.cache.close()
        self.transport.close()
        logger.info(f"Closed WeedClient [master_url={self.master_url}]")

    def __enter__(self) -> 'WeedClient':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Master administration

    def grow(
        self,
        count: int = 0,
        collection: str = '',
        replication: str = '',
        data_center: str = '',
        ttl: str = ''
    ) -> None:
        """
        Pre-allocate empty volumes.

        Args:
            count: Number of volumes to grow (omitted when not positive)
            collection: Collection for the new volumes
            replication: Replication type, e.g. "001"
            data_center: Data center hint
            ttl: Time to live, e.g. "3m", "4h", "5d", "6w", "7M", "8y"
        """
        args = write_args(collection, ttl)
        if count > 0:
            args[PARAM_COUNT] = str(count)
        if replication:
            args[PARAM_REPLICATION] = replication
        if data_center:
            args[PARAM_DATA_CENTER] = data_center
        self.grow_args(args)

    def grow_args(self, args: Args) -> None:
        self.transport.get(f"{self.master_url}{VOL_GROW_PATH}", params=args)
        logger.info(f"Requested volume growth [args={dict(args or {})}]")

    def delete_collection(self, collection: str, args: Args = None) -> None:
        params = dict(args or {})
        params[PARAM_COLLECTION] = collection
        self.transport.get(f"{self.master_url}{COL_DELETE_PATH}", params=params)
        logger.info(f"Deleted collection {collection}")

    def gc(self, threshold: float) -> None:
        """
        Force garbage collection of volumes whose reclaimable fraction
        exceeds threshold (e.g. 0.3).
        """
        params = {PARAM_GARBAGE_THRESHOLD: format_threshold(threshold)}
        self.transport.get(f"{self.master_url}{VOL_VACUUM_PATH}", params=params)
        logger.info(f"Requested vacuum [threshold={threshold}]")

    def status(self) -> SystemStatus:
        return self._get_json(DIR_STATUS_PATH, SystemStatus)

    def cluster_status(self) -> ClusterStatus:
        return self._get_json(CLUSTER_STATUS_PATH, ClusterStatus)

    # Lookup

    def lookup(self, volume_id: str, args: Args = None) -> LookupResult:
        """Ask the master for a volume's locations, bypassing the cache."""
        return self.resolver.lookup(volume_id, args)

    def get_volume_locations(self, file_id: str, args: Args = None, use_cache: bool = True) -> VolumeLocations:
        return self.resolver.resolve(file_id, args, use_cache=use_cache)

    def lookup_server_by_file_id(
        self,
        file_id: str,
        args: Args = None,
        pick=READ_PICK,
        use_cache: bool = False
    ) -> str:
        """
        Resolve a file to one server address.

        Args:
            file_id: File identifier
            args: Extra lookup arguments
            pick: READ_PICK for a random replica's public address,
                WRITE_PICK for the primary's internal address
            use_cache: Serve from the location cache when possible

        Returns:
            "host:port" of the chosen server
        """
        locations = self.resolver.resolve(file_id, args, use_cache=use_cache)
        return pick.pick(locations)

    def lookup_file_id(
        self,
        file_id: str,
        args: Args = None,
        pick=READ_PICK,
        use_cache: bool = False
    ) -> str:
        """Resolve a file to its full URL on one server."""
        server = self.lookup_server_by_file_id(file_id, args, pick=pick, use_cache=use_cache)
        return server_url(self.master_url, server, file_id)

    # Writes

    def assign(self, args: Args = None) -> AssignResult:
        return self.uploader.assign(args)

    def upload(self, upload_file: UploadFile) -> AssignResult:
        return self.uploader.upload(upload_file)

    def upload_file(self, path: str, collection: str = '', ttl: str = '') -> Tuple[AssignResult, UploadFile]:
        return self.uploader.upload_path(path, collection, ttl)

    def submit(self, path: str, collection: str = '', ttl: str = '') -> SubmitResult:
        return self.uploader.submit(path, collection, ttl)

    # Reads and deletes

    def download(
        self,
        file_id: str,
        consumer: Callable[[Iterator[bytes]], Any],
        args: Args = None
    ) -> str:
        """
        Stream a file's content into consumer.

        A transport failure re-resolves the volume without the cache and
        retries once; the consumer may therefore be called twice.

        Args:
            file_id: File identifier
            consumer: Called with an iterator over body chunks
            args: Extra lookup arguments

        Returns:
            File name reported by the volume server, or ''
        """
        return self._with_location_retry(
            'download', file_id, args, READ_PICK,
            lambda server: self.transport.download(
                server_url(self.master_url, server, file_id), consumer
            )
        )

    def delete_file(self, file_id: str, args: Args = None) -> None:
        """Delete a file on its primary volume server, retrying once uncached."""
        self._with_location_retry(
            'delete', file_id, args, WRITE_PICK,
            lambda server: self.transport.delete(server_url(self.master_url, server, file_id))
        )
        logger.info(f"Deleted file {file_id}")

    def _with_location_retry(
        self,
        operation_name: str,
        file_id: str,
        args: Args,
        pick,
        operation: Callable[[str], T]
    ) -> T:
        """
        Run resolve -> pick -> operation, at most MAX_LOCATION_ATTEMPTS times.

        Only the first attempt may use the location cache. Only transport
        failures of the operation itself lead to another attempt; resolve
        errors propagate immediately.
        """
        last_error: Optional[TransportError] = None

        for attempt in range(MAX_LOCATION_ATTEMPTS):
            use_cache = attempt == 0
            locations = self.resolver.resolve(file_id, args, use_cache=use_cache)
            server = pick.pick(locations)
            try:
                return operation(server)
            except TransportError as e:
                last_error = e
                if attempt + 1 < MAX_LOCATION_ATTEMPTS:
                    logger.warning(
                        f"{operation_name} failed on {server}, re-resolving without cache "
                        f"[fid={file_id}, error={e}]"
                    )

        logger.error(f"{operation_name} failed after {MAX_LOCATION_ATTEMPTS} attempts [fid={file_id}, error={last_error}]")
        raise last_error

    def _get_json(self, path: str, model: type) -> Any:
        body = self.transport.get(f"{self.master_url}{path}")
        try:
            return model.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"{path} result JSON unmarshal error: {e}", body) from e
