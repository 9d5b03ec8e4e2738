################################################################################
# File Name: settings.py
# Purpose/Description: Key/value settings persistence
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

"""Settings store: string key/value pairs, notably irs_rate_per_mile."""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..database import (
    DEFAULT_IRS_RATE_PER_MILE,
    SETTING_IRS_RATE,
    MileageDatabase,
    generateId,
)
from ..types import utcNow

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


class SettingsStore:
    """SQLite-backed settings."""

    def __init__(self, database: MileageDatabase):
        self.database = database

    def getSetting(self, key: str, default: str | None = None) -> str | None:
        with self.database.connect() as conn:
            row = conn.execute('SELECT value FROM settings WHERE key = ?', (key,)).fetchone()
        return row['value'] if row else default

    def setSetting(self, key: str, value: str) -> None:
        now = utcNow()
        with self.database.connect() as conn:
            conn.execute(
                """
                INSERT INTO settings (id, key, value, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
                """,
                (generateId(), key, str(value), now, now)
            )
        logger.info(f"Setting updated | key={key} | value={value}")

    def getAllSettings(self) -> dict[str, str]:
        with self.database.connect() as conn:
            rows = conn.execute('SELECT key, value FROM settings ORDER BY key').fetchall()
        return {row['key']: row['value'] for row in rows}

    def getRatePerMile(self) -> Decimal:
        """
        Reimbursement rate per mile.

        Falls back to the default rate when the setting is absent or not a
        valid decimal.
        """
        raw = self.getSetting(SETTING_IRS_RATE)
        if raw is None:
            return Decimal(DEFAULT_IRS_RATE_PER_MILE)
        try:
            return Decimal(raw)
        except InvalidOperation:
            logger.warning(f"Invalid {SETTING_IRS_RATE} setting, using default | value={raw}")
            return Decimal(DEFAULT_IRS_RATE_PER_MILE)

    def setRatePerMile(self, rate: Decimal | float | str) -> None:
        """
        Store a new reimbursement rate.

        Raises:
            ValueError: If the rate is not a non-negative decimal
        """
        try:
            value = Decimal(str(rate))
        except InvalidOperation as e:
            raise ValueError(f"Invalid rate: {rate}") from e
        if not value.is_finite() or value < 0:
            raise ValueError(f"Invalid rate: {rate}")
        self.setSetting(SETTING_IRS_RATE, str(value))


def calculateReimbursement(distanceMiles: float, ratePerMile: Decimal) -> Decimal:
    """Reimbursement for a distance, rounded half-up to cents."""
    return (Decimal(str(distanceMiles)) * ratePerMile).quantize(CENTS, rounding=ROUND_HALF_UP)
