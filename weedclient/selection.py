"""Server selection policies over a resolved location set."""

import random
from typing import Optional

from weedclient.models import VolumeLocations


class RandomReadPick:
    """Spread reads uniformly across replicas, using their public addresses."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def pick(self, locations: VolumeLocations) -> str:
        location = self._rng.choice(locations)
        return location.public_url or location.url


class HeadWritePick:
    """Send writes and deletes to the primary replica's internal address."""

    def pick(self, locations: VolumeLocations) -> str:
        return locations[0].url


READ_PICK = RandomReadPick()
WRITE_PICK = HeadWritePick()
