################################################################################
# File Name: __init__.py
# Purpose/Description: Source tree package initialization
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

"""
Auditproof mileage core source tree.

- common/: Shared utilities (config validation, secrets, logging, errors)
- mileage/: Trip lifecycle, integrity hashing, local store, sync and reports

Entry point: main.py
"""

__version__ = '1.0.0'
