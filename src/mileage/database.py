################################################################################
# File Name: database.py
# Purpose/Description: SQLite database management for local-first trip storage
# Author: Mileage Core Team
# Creation Date: 2026-10-03
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-03    | Core Team    | Initial implementation
# 2026-10-06    | Core Team    | Partial unique index for the single active trip
# 2026-10-16    | Core Team    | DatabaseError derives from common BaseError
# ================================================================================
################################################################################

"""
SQLite database management module for the mileage core.

The local database is the single source of truth; remote sync is an optional
side channel. Provides:
- Database initialization with all required tables (idempotent)
- WAL mode and foreign-key cascade on vehicle delete
- Connection management with a commit/rollback context manager
- Seeding of the reimbursement rate setting

Tables:
- vehicles: Vehicle identity and latest odometer photo references
- trips: Recorded trips with their point sequence as JSON text
- settings: Key/value strings (irs_rate_per_mile)
- reports: Insert-only exported report records
- vehicle_photos: Odometer photos per vehicle, month and slot

Usage:
    from mileage.database import MileageDatabase

    db = MileageDatabase('./data/mileage.db')
    db.initialize()

    with db.connect() as conn:
        rows = conn.execute('SELECT * FROM trips').fetchall()
"""

import logging
import os
import sqlite3
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from common.error_handler import BaseError

from .types import utcNow

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = './data/mileage.db'
DEFAULT_IRS_RATE_PER_MILE = '0.67'
SETTING_IRS_RATE = 'irs_rate_per_mile'


# ================================================================================
# Custom Exceptions
# ================================================================================

class DatabaseError(BaseError):
    """Base exception for database-related errors."""


class DatabaseConnectionError(DatabaseError):
    """Error connecting to or executing against the database."""
    pass


class DatabaseInitializationError(DatabaseError):
    """Error initializing the database schema."""
    pass


# ================================================================================
# Schema Definitions
# ================================================================================

SCHEMA_VEHICLES = """
CREATE TABLE IF NOT EXISTS vehicles (
    id TEXT PRIMARY KEY NOT NULL,
    make TEXT NOT NULL,
    model TEXT NOT NULL,
    year INTEGER NOT NULL,
    license_plate TEXT NOT NULL,
    photo_odometer_start TEXT,
    photo_odometer_start_hash TEXT,
    photo_odometer_end TEXT,
    photo_odometer_end_hash TEXT,
    month_year TEXT NOT NULL,
    verified INTEGER DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

SCHEMA_TRIPS = """
CREATE TABLE IF NOT EXISTS trips (
    id TEXT PRIMARY KEY NOT NULL,
    vehicle_id TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT,
    start_lat REAL NOT NULL,
    start_lng REAL NOT NULL,
    start_timestamp INTEGER,
    end_lat REAL,
    end_lng REAL,
    end_timestamp INTEGER,
    distance_miles REAL DEFAULT 0,
    distance_km REAL DEFAULT 0,
    points TEXT NOT NULL,
    purpose TEXT DEFAULT '',
    notes TEXT DEFAULT '',
    start_address TEXT,
    end_address TEXT,
    map_image_uri TEXT,
    hash TEXT,
    status TEXT DEFAULT 'active'
        CHECK (status IN ('active', 'completed', 'exported')),
    classification TEXT DEFAULT 'unclassified'
        CHECK (classification IN ('unclassified', 'business', 'personal', 'commute', 'other')),
    auto_detected INTEGER DEFAULT 0,
    needs_lookup INTEGER DEFAULT 0,
    synced_to_cloud INTEGER DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (vehicle_id) REFERENCES vehicles(id) ON DELETE CASCADE
)
"""

SCHEMA_SETTINGS = """
CREATE TABLE IF NOT EXISTS settings (
    id TEXT PRIMARY KEY NOT NULL,
    key TEXT UNIQUE NOT NULL,
    value TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

SCHEMA_REPORTS = """
CREATE TABLE IF NOT EXISTS reports (
    id TEXT PRIMARY KEY NOT NULL,
    vehicle_id TEXT NOT NULL,
    month_year TEXT NOT NULL,
    total_miles REAL DEFAULT 0,
    total_km REAL DEFAULT 0,
    total_value REAL DEFAULT 0,
    trip_count INTEGER DEFAULT 0,
    report_hash TEXT NOT NULL,
    signature TEXT NOT NULL,
    signed_at TEXT NOT NULL,
    export_uri TEXT,
    created_at TEXT NOT NULL,
    FOREIGN KEY (vehicle_id) REFERENCES vehicles(id) ON DELETE CASCADE
)
"""

SCHEMA_VEHICLE_PHOTOS = """
CREATE TABLE IF NOT EXISTS vehicle_photos (
    id TEXT PRIMARY KEY NOT NULL,
    vehicle_id TEXT NOT NULL,
    month_year TEXT NOT NULL,
    photo_type TEXT NOT NULL CHECK (photo_type IN ('start', 'end')),
    photo_uri TEXT NOT NULL,
    photo_hash TEXT,
    timestamp TEXT NOT NULL,
    synced_to_cloud INTEGER DEFAULT 0,
    created_at TEXT NOT NULL,
    UNIQUE (vehicle_id, month_year, photo_type),
    FOREIGN KEY (vehicle_id) REFERENCES vehicles(id) ON DELETE CASCADE
)
"""

ALL_SCHEMAS = [
    ('vehicles', SCHEMA_VEHICLES),
    ('trips', SCHEMA_TRIPS),
    ('settings', SCHEMA_SETTINGS),
    ('reports', SCHEMA_REPORTS),
    ('vehicle_photos', SCHEMA_VEHICLE_PHOTOS),
]

# At most one active trip system-wide
INDEX_TRIPS_SINGLE_ACTIVE = """
CREATE UNIQUE INDEX IF NOT EXISTS idx_trips_single_active
ON trips(status) WHERE status = 'active'
"""

ALL_INDEXES = [
    ('idx_trips_vehicle_id', 'CREATE INDEX IF NOT EXISTS idx_trips_vehicle_id ON trips(vehicle_id)'),
    ('idx_trips_status', 'CREATE INDEX IF NOT EXISTS idx_trips_status ON trips(status)'),
    ('idx_trips_start_time', 'CREATE INDEX IF NOT EXISTS idx_trips_start_time ON trips(start_time)'),
    ('idx_trips_needs_lookup', 'CREATE INDEX IF NOT EXISTS idx_trips_needs_lookup ON trips(needs_lookup)'),
    ('idx_trips_synced', 'CREATE INDEX IF NOT EXISTS idx_trips_synced ON trips(synced_to_cloud)'),
    ('idx_trips_single_active', INDEX_TRIPS_SINGLE_ACTIVE),
    ('idx_vehicles_month_year', 'CREATE INDEX IF NOT EXISTS idx_vehicles_month_year ON vehicles(month_year)'),
    ('idx_reports_month_year', 'CREATE INDEX IF NOT EXISTS idx_reports_month_year ON reports(month_year)'),
    ('idx_reports_vehicle_id', 'CREATE INDEX IF NOT EXISTS idx_reports_vehicle_id ON reports(vehicle_id)'),
    ('idx_vehicle_photos_vehicle_id',
     'CREATE INDEX IF NOT EXISTS idx_vehicle_photos_vehicle_id ON vehicle_photos(vehicle_id)'),
    ('idx_vehicle_photos_month_year',
     'CREATE INDEX IF NOT EXISTS idx_vehicle_photos_month_year ON vehicle_photos(month_year)'),
]


def generateId() -> str:
    """New opaque record identifier."""
    return uuid.uuid4().hex


# ================================================================================
# Database Class
# ================================================================================

class MileageDatabase:
    """
    SQLite database manager for local trip storage.

    Each connect() opens a fresh connection, so a file path (not ':memory:')
    is required for data to persist between calls.

    Attributes:
        dbPath: Path to the SQLite database file
        walMode: Whether to use WAL (Write-Ahead Logging) mode

    Example:
        db = MileageDatabase('./data/mileage.db')
        db.initialize()

        with db.connect() as conn:
            conn.execute("UPDATE trips SET purpose = ? WHERE id = ?", (purpose, tripId))
    """

    def __init__(self, dbPath: str, walMode: bool = True):
        self.dbPath = dbPath
        self.walMode = walMode
        self._initialized = False

    @contextmanager
    def connect(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        Commits on clean exit, rolls back on any exception. sqlite3 errors
        are wrapped in DatabaseConnectionError; other exceptions raised by
        the caller inside the block propagate unchanged after rollback.

        Yields:
            sqlite3.Connection: Database connection

        Raises:
            DatabaseConnectionError: If connecting or executing fails
        """
        conn = None
        try:
            conn = self._getConnection()
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            raise DatabaseConnectionError(
                f"Database connection error: {e}",
                details={'path': self.dbPath, 'error': str(e)}
            ) from e
        except Exception:
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    def _getConnection(self) -> sqlite3.Connection:
        try:
            dbDir = os.path.dirname(self.dbPath)
            if dbDir:
                Path(dbDir).mkdir(parents=True, exist_ok=True)

            conn = sqlite3.connect(self.dbPath, timeout=30.0)
            conn.row_factory = sqlite3.Row
            conn.execute('PRAGMA foreign_keys = ON')

            if self.walMode:
                conn.execute('PRAGMA journal_mode = WAL')
                conn.execute('PRAGMA synchronous = NORMAL')

            return conn

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to database: {e}",
                details={'path': self.dbPath, 'error': str(e)}
            ) from e

    def initialize(self) -> bool:
        """
        Create all tables and indexes and seed default settings.

        Safe to call multiple times.

        Returns:
            True if initialization succeeded

        Raises:
            DatabaseInitializationError: If schema creation fails
        """
        logger.info(f"Initializing database at {self.dbPath}")

        try:
            with self.connect() as conn:
                for tableName, schema in ALL_SCHEMAS:
                    logger.debug(f"Creating table: {tableName}")
                    conn.execute(schema)

                for indexName, indexSql in ALL_INDEXES:
                    logger.debug(f"Creating index: {indexName}")
                    conn.execute(indexSql)

                self._seedSettings(conn)

        except DatabaseConnectionError as e:
            raise DatabaseInitializationError(
                f"Failed to initialize database: {e.message}",
                details=e.details
            ) from e

        self._initialized = True
        logger.info("Database initialization complete")
        return True

    def _seedSettings(self, conn: sqlite3.Connection) -> None:
        now = utcNow()
        conn.execute(
            "INSERT OR IGNORE INTO settings (id, key, value, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (generateId(), SETTING_IRS_RATE, DEFAULT_IRS_RATE_PER_MILE, now, now)
        )

    def isInitialized(self) -> bool:
        return self._initialized

    def getTableNames(self) -> list[str]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row[0] for row in cursor.fetchall()]

    def getIndexNames(self) -> list[str]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type='index' AND name NOT LIKE 'sqlite_%'"
            )
            return [row[0] for row in cursor.fetchall()]

    def getStats(self) -> dict[str, Any]:
        """
        Get database statistics.

        Returns:
            Dictionary with file_size_bytes, table_counts and wal_mode
        """
        stats: dict[str, Any] = {
            'file_size_bytes': 0,
            'table_counts': {},
            'wal_mode': False
        }

        if os.path.exists(self.dbPath):
            stats['file_size_bytes'] = os.path.getsize(self.dbPath)

        with self.connect() as conn:
            journalMode = conn.execute('PRAGMA journal_mode').fetchone()[0]
            stats['wal_mode'] = journalMode.lower() == 'wal'

            for tableName, _ in ALL_SCHEMAS:
                count = conn.execute(f'SELECT COUNT(*) FROM {tableName}').fetchone()[0]
                stats['table_counts'][tableName] = count

        return stats


# ================================================================================
# Helper Functions
# ================================================================================

def createDatabaseFromConfig(config: dict[str, Any]) -> MileageDatabase:
    """
    Create a MileageDatabase instance from configuration.

    Args:
        config: Configuration dictionary with 'database' section

    Example:
        config = {'database': {'path': './data/mileage.db', 'walMode': True}}
        db = createDatabaseFromConfig(config)
    """
    dbConfig = config.get('database', {})
    return MileageDatabase(
        dbConfig.get('path', DEFAULT_DB_PATH),
        walMode=dbConfig.get('walMode', True)
    )


def initializeDatabase(config: dict[str, Any]) -> MileageDatabase:
    """
    Create and initialize a MileageDatabase from configuration.

    Raises:
        DatabaseInitializationError: If initialization fails
    """
    db = createDatabaseFromConfig(config)
    db.initialize()
    return db
