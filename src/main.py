################################################################################
# File Name: main.py
# Purpose/Description: Command line entry point for the mileage core
# Author: Mileage Core Team
# Creation Date: 2026-10-01
# Copyright: (c) 2026 Auditproof Mileage Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-01    | Core Team    | Initial implementation
# 2026-10-12    | Core Team    | Added report, verify and stats commands
# ================================================================================
################################################################################

"""
Command line entry point.

Maintenance commands for the local mileage store:
- init-db: create the database schema
- resolve: retry reverse geocoding for trips with offline addresses
- sync: push vehicles and finished trips to the remote store
- report: build a signed monthly report and write its files
- verify: check an exported report directory or every sealed trip hash
- stats: mileage statistics per vehicle or overall
- rate: show or change the per-mile reimbursement rate

Usage:
    python src/main.py --help
    python src/main.py init-db
    python src/main.py --config path/to/config.json resolve
    python src/main.py report VEHICLE_ID 2026-09 --output-dir ./exports
    python src/main.py verify --report-dir ./exports/2026-09
    python src/main.py rate --set 0.70
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Resolve project paths relative to this script (not CWD)
srcPath = Path(__file__).resolve().parent
projectRoot = srcPath.parent
if str(srcPath) not in sys.path:
    sys.path.insert(0, str(srcPath))

DEFAULT_CONFIG = str(srcPath / 'mileage_config.json')
DEFAULT_ENV = str(projectRoot / '.env')

from common.error_handler import formatError, handleError
from common.logging_config import getLogger, setupLogging, setupLoggingFromConfig
from mileage.config import MileageConfigError, loadMileageConfig
from mileage.exceptions import MileageError, NetworkUnavailableError
from mileage.orchestrator import MileageCore, OrchestratorError, createMileageCoreFromConfig
from mileage.report import verifyReportDirectory, verifyTripHash
from mileage.types import TripClassification

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 2
EXIT_UNKNOWN_ERROR = 3


def parseArgs(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Auditproof mileage core maintenance commands',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py init-db                        Create the local database
  python main.py resolve                        Retry offline addresses
  python main.py sync                           Push pending records
  python main.py report VEHICLE 2026-09 -o out  Build and write a report
  python main.py verify --report-dir out        Verify exported files
  python main.py verify --trips                 Verify sealed trip hashes
  python main.py stats --vehicle VEHICLE        Vehicle statistics
  python main.py rate --set 0.70                Change the rate per mile
        '''
    )

    parser.add_argument(
        '--config', '-c',
        default=DEFAULT_CONFIG,
        help='Path to configuration file (default: src/mileage_config.json)'
    )

    parser.add_argument(
        '--env-file', '-e',
        default=DEFAULT_ENV,
        help='Path to environment file (default: .env)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose (debug) logging'
    )

    parser.add_argument(
        '--version',
        action='version',
        version='%(prog)s 1.0.0'
    )

    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('init-db', help='Create the database schema')
    commands.add_parser('resolve', help='Resolve offline addresses')
    commands.add_parser('sync', help='Push vehicles and finished trips')

    report = commands.add_parser('report', help='Build a signed monthly report')
    report.add_argument('vehicleId', help='Vehicle id')
    report.add_argument('monthYear', help='Month in YYYY-MM format')
    report.add_argument(
        '--output-dir', '-o',
        default='./exports',
        help='Directory that receives a <monthYear> folder (default: ./exports)'
    )
    report.add_argument(
        '--classification',
        default=TripClassification.BUSINESS.value,
        choices=[c.value for c in TripClassification] + ['all'],
        help='Trip classification to include (default: business)'
    )
    report.add_argument(
        '--keep-status',
        action='store_true',
        help='Do not mark the included trips as exported'
    )

    verify = commands.add_parser('verify', help='Verify report files or trip hashes')
    target = verify.add_mutually_exclusive_group(required=True)
    target.add_argument('--report-dir', help='Directory with trips.json and metadata.json')
    target.add_argument('--trips', action='store_true', help='Recompute every sealed trip hash')

    stats = commands.add_parser('stats', help='Mileage statistics')
    stats.add_argument('--vehicle', help='Vehicle id (default: overall)')

    rate = commands.add_parser('rate', help='Show or change the rate per mile')
    rate.add_argument('--set', dest='newRate', help='New rate per mile, e.g. 0.70')

    return parser.parse_args(argv)


def printResult(data: Any) -> None:
    """Write a command result to stdout as JSON."""
    print(json.dumps(data, indent=2, default=str))


# ================================================================================
# Commands
# ================================================================================

def runInitDb(core: MileageCore, args: argparse.Namespace) -> int:
    printResult(core.database.getStats())
    return EXIT_SUCCESS


def runResolve(core: MileageCore, args: argparse.Namespace) -> int:
    summary = core.resolver.resolvePending()
    printResult(summary.toDict())
    return EXIT_SUCCESS


def runSync(core: MileageCore, args: argparse.Namespace) -> int:
    logger = getLogger(__name__)

    if core.syncService is None:
        logger.error("Sync is not enabled in the configuration")
        return EXIT_CONFIG_ERROR

    try:
        summary = core.syncService.syncAll()
    except NetworkUnavailableError as e:
        logger.warning(f"Sync skipped: {e}")
        return EXIT_RUNTIME_ERROR

    printResult(summary.toDict())
    return EXIT_SUCCESS if summary.failed == 0 else EXIT_RUNTIME_ERROR


def runReport(core: MileageCore, args: argparse.Namespace) -> int:
    logger = getLogger(__name__)

    outputDir = Path(args.output_dir) / args.monthYear
    classification = None if args.classification == 'all' else args.classification
    bundle = core.reportService.buildMonthlyReport(
        args.vehicleId,
        args.monthYear,
        classification=classification,
        exportUri=str(outputDir),
        markExported=not args.keep_status,
    )

    outputDir.mkdir(parents=True, exist_ok=True)
    for name, content in bundle.files().items():
        (outputDir / name).write_text(content, encoding='utf-8')
    logger.info(f"Report written | dir={outputDir} | trips={bundle.report.tripCount}")

    printResult({'reportId': bundle.report.id, 'hash': bundle.report.reportHash, 'dir': str(outputDir)})
    return EXIT_SUCCESS


def runVerify(core: MileageCore, args: argparse.Namespace) -> int:
    if args.report_dir:
        result = verifyReportDirectory(args.report_dir)
        printResult(result.toDict())
        return EXIT_SUCCESS if result.isValid else EXIT_RUNTIME_ERROR

    results = [
        verifyTripHash(trip) for trip in core.store.trips.listTrips() if trip.isFinished
    ]
    failures = [r.toDict() for r in results if not r.isValid]
    printResult({'checked': len(results), 'failed': len(failures), 'failures': failures})
    return EXIT_SUCCESS if not failures else EXIT_RUNTIME_ERROR


def runStats(core: MileageCore, args: argparse.Namespace) -> int:
    if args.vehicle:
        printResult(core.statisticsService.getVehicleStatistics(args.vehicle).toDict())
    else:
        printResult(core.statisticsService.getOverallStatistics().toDict())
    return EXIT_SUCCESS


def runRate(core: MileageCore, args: argparse.Namespace) -> int:
    if args.newRate is not None:
        core.store.settings.setRatePerMile(args.newRate)
    printResult({'ratePerMile': str(core.store.settings.getRatePerMile())})
    return EXIT_SUCCESS


COMMANDS = {
    'init-db': runInitDb,
    'resolve': runResolve,
    'sync': runSync,
    'report': runReport,
    'verify': runVerify,
    'stats': runStats,
    'rate': runRate,
}


def runCommand(config: dict[str, Any], args: argparse.Namespace) -> int:
    """
    Start the core, run one command and stop the core.

    Args:
        config: Validated configuration dictionary
        args: Parsed arguments

    Returns:
        Exit code of the command
    """
    logger = getLogger(__name__)

    core = createMileageCoreFromConfig(config)
    core.start()
    try:
        return COMMANDS[args.command](core, args)
    except ValueError as e:
        logger.error(f"Invalid argument: {e}")
        return EXIT_RUNTIME_ERROR
    except MileageError as e:
        logger.error(formatError(e))
        return EXIT_RUNTIME_ERROR
    finally:
        core.stop()


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parseArgs(argv)

    setupLogging(level='DEBUG' if args.verbose else 'INFO')
    logger = getLogger(__name__)

    logger.info("=" * 60)
    logger.info(f"Mileage core command: {args.command}")
    logger.info("=" * 60)

    try:
        config = loadMileageConfig(args.config, args.env_file)
        if not args.verbose:
            setupLoggingFromConfig(config)

        exitCode = runCommand(config, args)

        if exitCode == EXIT_SUCCESS:
            logger.info("Command completed successfully")
        else:
            logger.warning(f"Command completed with exit code {exitCode}")

        return exitCode

    except MileageConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    except OrchestratorError as e:
        logger.error(f"Startup error: {e}")
        return EXIT_RUNTIME_ERROR

    except KeyboardInterrupt:
        logger.warning("Command interrupted by user")
        return EXIT_RUNTIME_ERROR

    except Exception as e:
        handleError(e, context={'command': args.command})
        return EXIT_UNKNOWN_ERROR


if __name__ == '__main__':
    sys.exit(main())
