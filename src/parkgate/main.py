# File: src/parkgate/main.py
"""
Entry point for the parkgate facility engine

Loads a facility configuration, wires the event bus and the optional
receipt archive, and logs a status summary. --demo replays a short
gate scenario against the configured facility.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional
import argparse
import logging
import os
import sys

from .application.dtos import ReceiptDTO
from .application.facility import ParkingFacility
from .domain.models import EventType, SpotCategory
from .infrastructure.config import FacilityConfig, example_config
from .infrastructure.factories import FacilityFactory
from .infrastructure.messaging import EventBus
from .infrastructure.repositories import (
    ReceiptArchiveHandler, SQLAlchemyReceiptArchive, create_archive_engine
)


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """Setup application logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )
    return logging.getLogger("parkgate")


def run_demo(facility: ParkingFacility, logger: logging.Logger) -> None:
    """Walk one vehicle through entry, a rejected re-entry and exit"""
    morning = datetime.now().replace(hour=8, minute=0, second=0, microsecond=0)

    result = facility.entry("ABC123", SpotCategory.REGULAR, morning)
    logger.info(f"Entry: {result.message}")

    result = facility.entry("ABC123", SpotCategory.REGULAR, morning + timedelta(minutes=5))
    logger.info(f"Second entry: {result.error.value if result.error else 'accepted'}")

    exit_result = facility.exit("ABC123", morning + timedelta(hours=1, minutes=30))
    logger.info(f"Exit: {exit_result.message}")

    for receipt in facility.history("ABC123"):
        logger.info(f"Receipt: {ReceiptDTO.from_receipt(receipt).to_json()}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="parkgate", description="Parking facility engine")
    parser.add_argument("--config", type=Path, help="Facility configuration JSON (default: example layout)")
    parser.add_argument("--archive-url", help="SQLAlchemy URL for the receipt archive")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--demo", action="store_true", help="Run the demo gate scenario")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = FacilityConfig.from_json_file(args.config) if args.config else example_config()
    except (OSError, ValueError) as e:
        logger.error(f"Could not load configuration: {e}")
        return 1

    event_bus = EventBus()
    if args.archive_url:
        archive = SQLAlchemyReceiptArchive(create_archive_engine(args.archive_url))
        event_bus.subscribe(EventType.VEHICLE_EXITED, ReceiptArchiveHandler(archive))

    facility = FacilityFactory.create(config, event_bus)

    if args.demo:
        run_demo(facility, logger)

    status = facility.status()
    logger.info(
        f"Facility status: {status.occupied_spots}/{status.total_spots} occupied, "
        f"{status.completed_sessions} completed sessions, "
        f"revenue {status.total_revenue.amount} {status.total_revenue.currency}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
