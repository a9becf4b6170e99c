"""
Volume location resolution.

Turns a file identifier into the volume servers holding it: parse the
identifier, consult the location cache, and on a miss (or when the caller
bypasses the cache) ask the master's /dir/lookup endpoint, then remember
the answer. Choosing one server from the result is left to a selection
policy (see weedclient.selection).
"""

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from common.constants import DIR_LOOKUP_PATH, PARAM_VOLUME_ID
from common.logging_config import get_logger
from weedclient.exceptions import (
    DecodeError,
    FileNotFoundError as WeedFileNotFoundError,
    LookupFailedError
)
from weedclient.file_id import volume_id_of
from weedclient.location_cache import LocationCache
from weedclient.models import LookupResult, VolumeLocations
from weedclient.transport import HttpTransport

logger = get_logger(__name__)


class VolumeResolver:
    """Resolves file identifiers to volume locations through the master."""

    def __init__(self, transport: HttpTransport, master_url: str, cache: LocationCache):
        self.transport = transport
        self.master_url = master_url.rstrip('/')
        self.cache = cache

    def lookup(self, volume_id: str, args: Optional[Mapping[str, Any]] = None) -> LookupResult:
        """
        Query the master for a volume's locations, without caching.

        Args:
            volume_id: Volume ID
            args: Extra query arguments (e.g. collection, pretty)

        Returns:
            Decoded LookupResult

        Raises:
            TransportError: If the master cannot be reached
            DecodeError: If the body is not a lookup result
            LookupFailedError: If the master reports an error
        """
        params = dict(args or {})
        params[PARAM_VOLUME_ID] = volume_id

        body = self.transport.get(
            f"{self.master_url}{DIR_LOOKUP_PATH}", params=params,
            accept_client_errors=True
        )

        try:
            result = LookupResult.model_validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"{DIR_LOOKUP_PATH} result JSON unmarshal error: {e}", body) from e

        if result.error:
            raise LookupFailedError(result.error)

        return result

    def resolve(
        self,
        file_id: str,
        args: Optional[Mapping[str, Any]] = None,
        use_cache: bool = True
    ) -> VolumeLocations:
        """
        Resolve a file identifier to its volume locations.

        Args:
            file_id: File identifier
            args: Extra lookup arguments forwarded to the master
            use_cache: Serve from the location cache when possible

        Returns:
            Non-empty tuple of locations, primary first

        Raises:
            InvalidFileIdError: If file_id is malformed
            LookupFailedError: If the master reports an error
            FileNotFoundError: If the master reports no locations
        """
        volume_id = volume_id_of(file_id)

        if use_cache:
            cached = self.cache.get(volume_id)
            if cached is not None:
                logger.debug(f"Location cache hit [volume_id={volume_id}]")
                return cached

        result = self.lookup(volume_id, args)
        if not result.locations:
            raise WeedFileNotFoundError(f"File not found: {file_id}")

        locations = tuple(result.locations)
        self.cache.put(volume_id, locations)
        logger.debug(
            f"Resolved volume {volume_id} -> {[location.url for location in locations]} "
            f"[use_cache={use_cache}]"
        )
        return locations
