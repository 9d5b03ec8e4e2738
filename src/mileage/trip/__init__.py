################################################################################
# File Name: __init__.py
# Purpose/Description: Trip lifecycle package
# Author: Mileage Core Team
# Creation Date: 2026-10-05
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-05    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""Manual trip lifecycle and the completion logic shared with auto-detection."""

from .finalizer import TripFinalizer
from .manager import DEFAULT_TRACKING_INTERVAL_SECONDS, TripLifecycleManager

__all__ = [
    'TripFinalizer',
    'TripLifecycleManager',
    'DEFAULT_TRACKING_INTERVAL_SECONDS',
]
