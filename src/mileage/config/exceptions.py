################################################################################
# File Name: exceptions.py
# Purpose/Description: Mileage configuration exception
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Error category from common base class
# ================================================================================
################################################################################

"""
Mileage configuration exception.

Usage:
    from mileage.config.exceptions import MileageConfigError

    try:
        config = loadMileageConfig('mileage_config.json')
    except MileageConfigError as e:
        print(f"Missing fields: {e.missingFields}")
        print(f"Invalid fields: {e.invalidFields}")
"""

from common.error_handler import ConfigurationError


class MileageConfigError(ConfigurationError):
    """
    Raised when configuration loading or validation fails.

    Attributes:
        missingFields: Required field paths that are missing
        invalidFields: Field paths with invalid values
    """

    def __init__(
        self,
        message: str,
        missingFields: list[str] | None = None,
        invalidFields: list[str] | None = None
    ):
        self.missingFields = missingFields or []
        self.invalidFields = invalidFields or []
        super().__init__(
            message,
            details={'missingFields': self.missingFields, 'invalidFields': self.invalidFields}
        )
