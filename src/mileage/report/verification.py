################################################################################
# File Name: verification.py
# Purpose/Description: Tamper checks for exported reports and sealed trips
# Author: Mileage Core Team
# Creation Date: 2026-10-09
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-09    | Core Team    | Initial implementation
# 2026-10-11    | Core Team    | Signature block cross-check, trip hash checks
# ================================================================================
################################################################################

"""
Report and trip verification.

A missing artifact is reported as MISSING. Anything present but unreadable,
inconsistent or hashing differently is TAMPERED. Neither is ever reported
as VALID.

Usage:
    result = verifyReportDirectory('exports/abc_2026-09')
    if not result.isValid:
        print(result.message)
"""

import json
import logging
from pathlib import Path
from typing import Any

from ..exceptions import IntegrityMismatchError
from ..integrity import hashReport, hashTrip, parseSignature
from ..types import Trip
from .types import (
    METADATA_FILENAME,
    PAYLOAD_FILENAME,
    SIGNATURE_FILENAME,
    VerificationOutcome,
    VerificationResult,
)

logger = logging.getLogger(__name__)


def _tampered(message: str, expected: str | None = None, actual: str | None = None) -> VerificationResult:
    logger.warning(f"REPORT TAMPERED | {message}")
    return VerificationResult(VerificationOutcome.TAMPERED, message, expected, actual)


def verifyReport(
    payloadText: str | None,
    metadataText: str | None,
    signatureText: str | None = None
) -> VerificationResult:
    """
    Recompute a report hash from its exported JSON and compare.

    Args:
        payloadText: trips.json content, None if the file is absent
        metadataText: metadata.json content, None if the file is absent
        signatureText: Optional signature block; its digest must match too

    Returns:
        VerificationResult with outcome VALID, TAMPERED or MISSING
    """
    if payloadText is None or metadataText is None:
        missing = PAYLOAD_FILENAME if payloadText is None else METADATA_FILENAME
        return VerificationResult(
            VerificationOutcome.MISSING,
            f"Report file missing: {missing}"
        )

    try:
        payload = json.loads(payloadText)
        metadata = json.loads(metadataText)
    except json.JSONDecodeError as e:
        return _tampered(f"Report content cannot be parsed: {e}")

    if not isinstance(payload, dict) or not isinstance(metadata, dict):
        return _tampered("Report content has an unexpected structure")

    expectedHash = metadata.get('hash')
    if not expectedHash or 'trips' not in payload or 'vehicle' not in payload:
        return _tampered("Report content is incomplete", expected=expectedHash)

    actualHash = hashReport({
        'trips': payload['trips'],
        'vehicle': payload['vehicle'],
        'monthYear': metadata.get('month'),
        'totalMiles': metadata.get('totalMiles'),
        'photoHashes': metadata.get('photos'),
        'mapHashes': metadata.get('mapHashes', []),
    })

    if actualHash != expectedHash:
        return _tampered(
            "Report hash mismatch, data may have been tampered with",
            expected=expectedHash,
            actual=actualHash
        )

    if signatureText is not None:
        parsed = parseSignature(signatureText)
        if parsed is None:
            return _tampered("Signature block is malformed", expectedHash, actualHash)
        if parsed[0] != expectedHash:
            return _tampered("Signature digest does not match report", parsed[0], actualHash)

    logger.info(f"Report verified | hash={actualHash[:12]}")
    return VerificationResult(
        VerificationOutcome.VALID,
        "Report signature verified successfully",
        expectedHash,
        actualHash
    )


def _readOptional(path: Path) -> str | None:
    try:
        return path.read_text(encoding='utf-8')
    except FileNotFoundError:
        return None


def verifyReportDirectory(reportDir: str | Path) -> VerificationResult:
    """
    Verify the artifacts in an export directory.

    The signature file is checked when present.
    """
    directory = Path(reportDir)
    return verifyReport(
        _readOptional(directory / PAYLOAD_FILENAME),
        _readOptional(directory / METADATA_FILENAME),
        _readOptional(directory / SIGNATURE_FILENAME),
    )


def requireValidReport(
    payloadText: str | None,
    metadataText: str | None,
    signatureText: str | None = None
) -> VerificationResult:
    """
    Verify a report, raising instead of returning a failed outcome.

    Raises:
        FileNotFoundError: If an artifact is missing
        IntegrityMismatchError: If the content was tampered with
    """
    result = verifyReport(payloadText, metadataText, signatureText)
    if result.outcome == VerificationOutcome.MISSING:
        raise FileNotFoundError(result.message)
    if result.outcome == VerificationOutcome.TAMPERED:
        raise IntegrityMismatchError(result.message, details=_hashDetails(result))
    return result


def verifyTripHash(trip: Trip) -> VerificationResult:
    """
    Recompute a sealed trip's hash.

    Returns:
        MISSING for a trip without a hash, otherwise VALID or TAMPERED
    """
    if not trip.hash:
        return VerificationResult(VerificationOutcome.MISSING, f"Trip has no hash: {trip.id}")

    actual = hashTrip(trip)
    if actual != trip.hash:
        return _tampered(f"Trip hash mismatch: {trip.id}", trip.hash, actual)
    return VerificationResult(VerificationOutcome.VALID, "Trip hash verified", trip.hash, actual)


def _hashDetails(result: VerificationResult) -> dict[str, Any]:
    return {'expected': result.expectedHash, 'actual': result.actualHash}
