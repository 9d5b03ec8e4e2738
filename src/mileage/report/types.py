################################################################################
# File Name: types.py
# Purpose/Description: Report bundle, verification outcome and report errors
# Author: Mileage Core Team
# Creation Date: 2026-10-09
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-09    | Core Team    | Initial implementation
# 2026-10-16    | Core Team    | Error category from common base class
# ================================================================================
################################################################################

"""
Report type definitions.

- EmptyReportError: no eligible trips for the requested month
- VerificationOutcome: VALID, TAMPERED or MISSING
- VerificationResult: outcome plus the hashes that were compared
- ReportBundle: everything the export collaborator writes to disk
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from common.error_handler import DataError

from ..exceptions import MileageError
from ..types import Report

# Export artifact names
PAYLOAD_FILENAME = 'trips.json'
METADATA_FILENAME = 'metadata.json'
CSV_FILENAME = 'trips.csv'
SIGNATURE_FILENAME = 'report_signature.txt'


class EmptyReportError(MileageError, DataError):
    """The month has no trips of the requested classification."""


class VerificationOutcome(Enum):
    """
    Result of checking an exported report.

    Values:
        VALID: Recomputed hash equals the recorded hash
        TAMPERED: Content is present but the hashes differ or it cannot be parsed
        MISSING: A required artifact is absent
    """
    VALID = "valid"
    TAMPERED = "tampered"
    MISSING = "missing"


@dataclass
class VerificationResult:
    """
    Verification outcome for one report.

    Attributes:
        outcome: VALID, TAMPERED or MISSING
        message: Human-readable explanation
        expectedHash: Hash recorded in the metadata
        actualHash: Hash recomputed from the payload
    """
    outcome: VerificationOutcome
    message: str
    expectedHash: str | None = None
    actualHash: str | None = None

    @property
    def isValid(self) -> bool:
        return self.outcome == VerificationOutcome.VALID

    def toDict(self) -> dict[str, Any]:
        return {
            'outcome': self.outcome.value,
            'message': self.message,
            'expectedHash': self.expectedHash,
            'actualHash': self.actualHash,
        }


@dataclass
class ReportBundle:
    """
    A signed monthly report, ready to be written by the export collaborator.

    Attributes:
        report: Persisted report row
        payload: trips.json content (vehicle, monthYear, trips, summary)
        metadata: metadata.json content (hash, totals, photo and map hashes)
        signature: Signature block text
        csv: trips.csv content
        mapImagePaths: Map images referenced by mapHashes, in order
    """
    report: Report
    payload: dict[str, Any]
    metadata: dict[str, Any]
    signature: str
    csv: str
    mapImagePaths: list[str] = field(default_factory=list)

    def payloadJson(self) -> str:
        return json.dumps(self.payload, indent=2, ensure_ascii=False)

    def metadataJson(self) -> str:
        return json.dumps(self.metadata, indent=2, ensure_ascii=False)

    def files(self) -> dict[str, str]:
        """Artifact name to text content."""
        return {
            PAYLOAD_FILENAME: self.payloadJson(),
            METADATA_FILENAME: self.metadataJson(),
            CSV_FILENAME: self.csv,
            SIGNATURE_FILENAME: self.signature,
        }
