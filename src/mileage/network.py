################################################################################
# File Name: network.py
# Purpose/Description: Connectivity check used as the sync precondition
# Author: Mileage Core Team
# Creation Date: 2026-10-08
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-08    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""Connectivity check: a short TCP connect to a well-known host."""

import logging
import socket
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CHECK_HOST = '8.8.8.8'
DEFAULT_CHECK_PORT = 53
DEFAULT_CHECK_TIMEOUT_SECONDS = 3.0


def isNetworkAvailable(
    host: str = DEFAULT_CHECK_HOST,
    port: int = DEFAULT_CHECK_PORT,
    timeout: float = DEFAULT_CHECK_TIMEOUT_SECONDS
) -> bool:
    """
    Check whether a TCP connection to host:port can be opened.

    Args:
        host: Check host
        port: Check port
        timeout: Connect timeout in seconds

    Returns:
        True if the connection succeeded
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError as e:
        logger.debug(f"Connectivity check failed | host={host}:{port} | error={e}")
        return False


def createNetworkCheckFromConfig(config: dict[str, Any]):
    """
    Build a zero-argument check from the 'sync' section.

    Args:
        config: Configuration dictionary with optional sync.checkHost,
            sync.checkPort and sync.checkTimeoutSeconds

    Returns:
        Callable returning True when the network is reachable
    """
    syncConfig = config.get('sync', {})
    host = syncConfig.get('checkHost', DEFAULT_CHECK_HOST)
    port = int(syncConfig.get('checkPort', DEFAULT_CHECK_PORT))
    timeout = float(syncConfig.get('checkTimeoutSeconds', DEFAULT_CHECK_TIMEOUT_SECONDS))

    def check() -> bool:
        return isNetworkAvailable(host, port, timeout)

    return check
