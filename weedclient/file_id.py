"""File identifier parsing."""

from typing import Tuple

from weedclient.exceptions import InvalidFileIdError


def parse_file_id(file_id: str) -> Tuple[str, str]:
    """
    Split a file identifier into volume ID and key.

    The separator is ',' if the identifier contains one, otherwise '/'.

    Args:
        file_id: Identifier such as "3,01637037d6" or "3/01637037d6"

    Returns:
        Tuple of (volume_id, key)

    Raises:
        InvalidFileIdError: If the split does not yield two non-empty parts
    """
    separator = ',' if ',' in file_id else '/'
    parts = file_id.split(separator)

    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidFileIdError(file_id)

    return parts[0], parts[1]


def volume_id_of(file_id: str) -> str:
    """Return the volume ID part of a file identifier."""
    return parse_file_id(file_id)[0]
