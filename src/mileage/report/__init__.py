################################################################################
# File Name: __init__.py
# Purpose/Description: Monthly report package
# Author: Mileage Core Team
# Creation Date: 2026-10-09
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-09    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""
Monthly report package.

Usage:
    from mileage.report import ReportService, verifyReport

    bundle = ReportService(store).buildMonthlyReport(vehicleId, '2026-09')
    result = verifyReport(bundle.payloadJson(), bundle.metadataJson())
"""

from .builder import ReportService
from .export import CSV_HEADERS, generateCsv, tripPayload, vehiclePayload
from .types import (
    CSV_FILENAME,
    METADATA_FILENAME,
    PAYLOAD_FILENAME,
    SIGNATURE_FILENAME,
    EmptyReportError,
    ReportBundle,
    VerificationOutcome,
    VerificationResult,
)
from .verification import (
    requireValidReport,
    verifyReport,
    verifyReportDirectory,
    verifyTripHash,
)

__all__ = [
    'ReportService',
    'ReportBundle',
    'EmptyReportError',
    'VerificationOutcome',
    'VerificationResult',
    'verifyReport',
    'verifyReportDirectory',
    'requireValidReport',
    'verifyTripHash',
    'generateCsv',
    'tripPayload',
    'vehiclePayload',
    'CSV_HEADERS',
    'PAYLOAD_FILENAME',
    'METADATA_FILENAME',
    'CSV_FILENAME',
    'SIGNATURE_FILENAME',
]
