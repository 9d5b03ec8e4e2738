################################################################################
# File Name: reports.py
# Purpose/Description: Insert-only persistence for exported reports
# Author: Mileage Core Team
# Creation Date: 2026-10-07
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-07    | Core Team    | Initial implementation
# ================================================================================
################################################################################

"""Report store. Reports are never updated; a re-export inserts a new row."""

import logging

from ..database import MileageDatabase
from ..types import Report

logger = logging.getLogger(__name__)


class ReportStore:
    """SQLite-backed report records."""

    def __init__(self, database: MileageDatabase):
        self.database = database

    def insertReport(self, report: Report) -> Report:
        with self.database.connect() as conn:
            conn.execute(
                """
                INSERT INTO reports (
                    id, vehicle_id, month_year, total_miles, total_km, total_value,
                    trip_count, report_hash, signature, signed_at, export_uri, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (report.id, report.vehicleId, report.monthYear, report.totalMiles,
                 report.totalKm, report.totalValue, report.tripCount, report.reportHash,
                 report.signature, report.signedAt, report.exportUri, report.createdAt)
            )
        logger.info(
            f"Report recorded | reportId={report.id} | vehicleId={report.vehicleId} "
            f"| month={report.monthYear} | trips={report.tripCount}"
        )
        return report

    def getReport(self, reportId: str) -> Report | None:
        with self.database.connect() as conn:
            row = conn.execute('SELECT * FROM reports WHERE id = ?', (reportId,)).fetchone()
        return Report.fromRow(row) if row else None

    def findByHash(self, reportHash: str) -> Report | None:
        with self.database.connect() as conn:
            row = conn.execute(
                'SELECT * FROM reports WHERE report_hash = ? ORDER BY created_at DESC LIMIT 1',
                (reportHash,)
            ).fetchone()
        return Report.fromRow(row) if row else None

    def listReports(self, vehicleId: str | None = None) -> list[Report]:
        """Reports, newest first, optionally for one vehicle."""
        query = 'SELECT * FROM reports'
        params: tuple[str, ...] = ()
        if vehicleId:
            query += ' WHERE vehicle_id = ?'
            params = (vehicleId,)
        query += ' ORDER BY created_at DESC'
        with self.database.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [Report.fromRow(row) for row in rows]
