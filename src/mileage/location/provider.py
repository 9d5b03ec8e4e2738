################################################################################
# File Name: provider.py
# Purpose/Description: Position provider contract and a scripted provider
# Author: Mileage Core Team
# Creation Date: 2026-10-04
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-04    | Core Team    | Initial implementation
# 2026-10-08    | Core Team    | Scripted provider for drive replays
# ================================================================================
################################################################################

"""
Position providers.

LocationProvider is the platform collaborator: it reports permission state
and the current fix. Position acquisition is the only blocking call in the
trip flow.

SimulatedLocationProvider replays a scripted list of samples. It is used to
drive the trip manager and detector without GPS hardware, for example when
replaying a recorded drive.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable

from ..types import Coordinates
from .types import LocationSample, LocationUnavailableError

logger = logging.getLogger(__name__)


class LocationProvider(ABC):
    """Platform location collaborator."""

    @abstractmethod
    def hasForegroundPermission(self) -> bool:
        """True if foreground location access is granted."""

    @abstractmethod
    def hasBackgroundPermission(self) -> bool:
        """True if background location access is granted."""

    @abstractmethod
    def getCurrentSample(self) -> LocationSample:
        """
        Acquire the current fix.

        Raises:
            LocationError: If no fix can be obtained
        """

    def getCurrentPosition(self) -> Coordinates:
        return self.getCurrentSample().coords


class SimulatedLocationProvider(LocationProvider):
    """
    Replays queued samples; the last sample repeats once the queue drains.

    Example:
        provider = SimulatedLocationProvider([
            LocationSample(Coordinates(40.0, -74.0, 0), speedMps=6.7),
        ])
        provider.enqueue(LocationSample(Coordinates(40.001, -74.0, 15000), speedMps=6.7))
    """

    def __init__(
        self,
        samples: Iterable[LocationSample] = (),
        foregroundGranted: bool = True,
        backgroundGranted: bool = True
    ):
        self.foregroundGranted = foregroundGranted
        self.backgroundGranted = backgroundGranted
        self._queue: deque[LocationSample] = deque(samples)
        self._last: LocationSample | None = None
        self._lock = threading.Lock()

    def hasForegroundPermission(self) -> bool:
        return self.foregroundGranted

    def hasBackgroundPermission(self) -> bool:
        return self.backgroundGranted

    def enqueue(self, *samples: LocationSample) -> None:
        with self._lock:
            self._queue.extend(samples)

    def setPosition(self, coords: Coordinates, speedMps: float | None = None) -> None:
        """Replace any queued samples with a single fixed position."""
        with self._lock:
            self._queue.clear()
            self._last = LocationSample(coords=coords, speedMps=speedMps)

    def getCurrentSample(self) -> LocationSample:
        with self._lock:
            if self._queue:
                self._last = self._queue.popleft()
            if self._last is None:
                raise LocationUnavailableError("No simulated position available")
            return self._last
