################################################################################
# File Name: __init__.py
# Purpose/Description: Location provider and background sampling package
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

"""Location provider contract and cancellable background sampling."""

from .provider import LocationProvider, SimulatedLocationProvider
from .sampler import LocationSampler, SampleCallback, Subscription
from .types import (
    LocationError,
    LocationSample,
    LocationUnavailableError,
    SamplerStats,
    SubscriptionState,
)

__all__ = [
    'LocationProvider',
    'SimulatedLocationProvider',
    'LocationSampler',
    'Subscription',
    'SampleCallback',
    'LocationSample',
    'LocationError',
    'LocationUnavailableError',
    'SamplerStats',
    'SubscriptionState',
]
