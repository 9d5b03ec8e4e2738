################################################################################
# File Name: sampler.py
# Purpose/Description: Background location sampling subscriptions
# Author: Mileage Core Team
# Creation Date: 2026-10-04
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-04    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Background location sampling.

A subscription is a daemon thread that polls the LocationProvider at a fixed
interval and hands each sample to a callback. Provider and callback errors
are logged and counted; sampling continues. cancel() stops the thread and
waits for it, so no callback runs after cancel() returns (unless the join
times out, which is logged).

Usage:
    sampler = LocationSampler(provider)
    subscription = sampler.subscribe(onSample, intervalSeconds=10.0, name='manual-trip')
    ...
    subscription.cancel()
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from .provider import LocationProvider
from .types import LocationSample, SamplerStats, SubscriptionState

logger = logging.getLogger(__name__)

SampleCallback = Callable[[LocationSample], None]

DEFAULT_CANCEL_TIMEOUT_SECONDS = 5.0


class Subscription:
    """
    One running sampling registration.

    Attributes:
        name: Label used in logs and the thread name
        intervalSeconds: Delay between provider polls
    """

    def __init__(
        self,
        provider: LocationProvider,
        callback: SampleCallback,
        intervalSeconds: float,
        name: str
    ):
        self.name = name
        self.intervalSeconds = intervalSeconds
        self._provider = provider
        self._callback = callback
        self._stopEvent = threading.Event()
        self._stats = SamplerStats()
        self._state = SubscriptionState.RUNNING
        self._thread = threading.Thread(
            target=self._samplingLoop,
            name=f'LocationSampler-{name}',
            daemon=True
        )

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def isActive(self) -> bool:
        return self._state == SubscriptionState.RUNNING and not self._stopEvent.is_set()

    def start(self) -> None:
        self._stats.startTime = datetime.now()
        self._thread.start()
        logger.info(f"Sampling started | name={self.name} | interval={self.intervalSeconds}s")

    def cancel(self, timeout: float = DEFAULT_CANCEL_TIMEOUT_SECONDS) -> bool:
        """
        Stop sampling and wait for the thread to finish.

        Safe to call more than once and from inside the callback.

        Returns:
            True if the thread has finished, False if the join timed out
        """
        self._stopEvent.set()

        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning(f"Sampling thread did not stop within timeout | name={self.name}")
                return False

        if self._state != SubscriptionState.CANCELLED:
            self._state = SubscriptionState.CANCELLED
            self._stats.endTime = datetime.now()
            logger.info(
                f"Sampling cancelled | name={self.name} "
                f"| samples={self._stats.samplesDelivered} "
                f"| errors={self._stats.providerErrors + self._stats.callbackErrors}"
            )
        return True

    def getStats(self) -> SamplerStats:
        return self._stats

    def _samplingLoop(self) -> None:
        while not self._stopEvent.is_set():
            self._sampleOnce()
            self._stopEvent.wait(self.intervalSeconds)

    def _sampleOnce(self) -> None:
        try:
            sample = self._provider.getCurrentSample()
        except Exception as e:
            self._stats.providerErrors += 1
            logger.warning(f"Location provider error | name={self.name} | error={e}")
            return

        if self._stopEvent.is_set():
            return

        try:
            self._callback(sample)
            self._stats.samplesDelivered += 1
        except Exception as e:
            self._stats.callbackErrors += 1
            logger.error(f"Sample callback error | name={self.name} | error={e}")


class LocationSampler:
    """
    Creates sampling subscriptions against one provider.

    Attributes:
        provider: Position source shared by every subscription
    """

    def __init__(self, provider: LocationProvider):
        self.provider = provider

    def subscribe(
        self,
        callback: SampleCallback,
        intervalSeconds: float,
        name: str = 'sampler'
    ) -> Subscription:
        """
        Start a sampling subscription.

        Args:
            callback: Receives each sample on the subscription thread
            intervalSeconds: Delay between polls
            name: Label for logs

        Returns:
            Running Subscription

        Raises:
            ValueError: If intervalSeconds is not positive
        """
        if intervalSeconds <= 0:
            raise ValueError(f"Sampling interval must be positive: {intervalSeconds}")

        subscription = Subscription(self.provider, callback, intervalSeconds, name)
        subscription.start()
        return subscription
