################################################################################
# File Name: __init__.py
# Purpose/Description: Test package initialization
# Author: Mileage Core Team
# Creation Date: 2026-10-01
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
################################################################################

"""
Test package for the mileage core.

Run tests with:
    pytest tests/
    pytest tests/ -m "not slow"
"""
