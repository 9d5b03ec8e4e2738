################################################################################
# File Name: integrity.py
# Purpose/Description: Content hashing and signatures for trips and reports
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# 2026-10-08    | Core Team    | Added hashFile for photos and map images
# ================================================================================
################################################################################

"""
Integrity engine.

Hashes are SHA-256 over a canonical JSON serialization: fixed key order,
compact separators, None-valued keys dropped. Point order is significant.
A trip hash is a point-in-time seal written once at completion.

Usage:
    from mileage.integrity import hashTrip, formatSignature

    digest = hashTrip(trip)
    signature = formatSignature(digest, utcNow())
"""

import hashlib
import json
from pathlib import Path
from typing import Any

from .types import Coordinates, Trip

TRIP_HASH_FIELDS = (
    'start_time',
    'end_time',
    'start_coords',
    'end_coords',
    'distance_miles',
    'points',
    'purpose',
    'notes',
)

REPORT_HASH_FIELDS = (
    'trips',
    'vehicle',
    'monthYear',
    'totalMiles',
    'photoHashes',
    'mapHashes',
)

SIGNATURE_TITLE = 'Auditproof Mileage Logger Report Signature'

_FILE_CHUNK_SIZE = 65536


def _canonical(value: Any) -> Any:
    if isinstance(value, Coordinates):
        return value.toDict()
    if isinstance(value, dict):
        return {k: _canonical(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def canonicalJson(fields: dict[str, Any], order: tuple[str, ...]) -> str:
    """
    Serialize selected fields in a fixed order.

    Args:
        fields: Source mapping
        order: Keys to include, in output order

    Returns:
        Compact JSON text
    """
    ordered = {key: fields.get(key) for key in order}
    return json.dumps(_canonical(ordered), separators=(',', ':'), ensure_ascii=False)


def sha256Hex(text: str) -> str:
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


def tripHashFields(trip: Trip) -> dict[str, Any]:
    """The finalized fields of a trip that its hash covers."""
    return {
        'start_time': trip.startTime,
        'end_time': trip.endTime,
        'start_coords': trip.startCoords,
        'end_coords': trip.endCoords,
        'distance_miles': trip.distanceMiles,
        'points': list(trip.points),
        'purpose': trip.purpose,
        'notes': trip.notes,
    }


def hashTrip(trip: Trip | dict[str, Any]) -> str:
    """
    Deterministic digest of a trip's finalized fields.

    Args:
        trip: Trip record, or a mapping with the snake_case hash fields

    Returns:
        64-character lowercase hex digest
    """
    fields = tripHashFields(trip) if isinstance(trip, Trip) else trip
    return sha256Hex(canonicalJson(fields, TRIP_HASH_FIELDS))


def hashReport(fields: dict[str, Any]) -> str:
    """
    Deterministic digest of a report payload.

    Args:
        fields: Mapping with trips, vehicle, monthYear, totalMiles,
            photoHashes and mapHashes

    Returns:
        64-character lowercase hex digest
    """
    return sha256Hex(canonicalJson(fields, REPORT_HASH_FIELDS))


def formatSignature(digest: str, timestamp: str) -> str:
    """Human-readable proof block embedding the digest and signing time."""
    return f"{SIGNATURE_TITLE}\nSHA256: {digest}\nTimestamp: {timestamp}"


def parseSignature(signature: str) -> tuple[str, str] | None:
    """
    Extract (digest, timestamp) from a signature block.

    Returns:
        Tuple, or None if the text is not a signature block
    """
    lines = signature.strip().splitlines()
    if len(lines) != 3 or lines[0] != SIGNATURE_TITLE:
        return None
    if not lines[1].startswith('SHA256: ') or not lines[2].startswith('Timestamp: '):
        return None
    return lines[1][len('SHA256: '):], lines[2][len('Timestamp: '):]


def hashFile(path: str | Path) -> str:
    """
    SHA-256 of a file's bytes.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(_FILE_CHUNK_SIZE), b''):
            digest.update(chunk)
    return digest.hexdigest()
