"""
Seed script for station capability profiles.

Development stand-in for the external provisioning process: reads a JSON
list of stations and inserts or updates their capability flags.

File format:
    [
        {"id": 1, "name": "Rooftop", "temperature": true, "humidity": true},
        {"id": 2, "name": "Mast", "anemometer": true, "wind_vane": true, "rain_gauge": true}
    ]

Flags left out are false.

Usage:
    python scripts/seed_stations.py stations.json
    python scripts/seed_stations.py stations.json --create-tables
"""

import asyncio
import json
import sys
import argparse
from pathlib import Path
from typing import Any, Dict, List

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from weather_collector.crud.station import station as station_crud
from weather_collector.schemas.station import CapabilitySet
from weather_collector.utils.logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def load_stations(path: Path) -> List[Dict[str, Any]]:
    """
    Read and validate a station file.

    Args:
        path: JSON file holding a list of station objects

    Returns:
        Row values per station: id, name and the eight capability flags

    Raises:
        ValueError: If the file is not a list of objects with integer ids
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of stations")

    rows = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or not isinstance(entry.get("id"), int):
            raise ValueError(f"{path}: entry {index} needs an integer 'id'")
        flags = CapabilitySet.model_validate(
            {key: value for key, value in entry.items() if key in CapabilitySet.model_fields}
        )
        row = {"id": entry["id"], "name": entry.get("name")}
        row.update(flags.model_dump())
        rows.append(row)
    return rows


async def seed_stations(
    session_factory: async_sessionmaker[AsyncSession],
    rows: List[Dict[str, Any]]
) -> int:
    """
    Insert or update station rows.

    Args:
        session_factory: Session factory for the target database
        rows: Output of load_stations()

    Returns:
        Number of stations written
    """
    async with session_factory() as db:
        for row in rows:
            await station_crud.upsert(db, values=row)
            capabilities = CapabilitySet.model_validate(row)
            logger.info(
                f"  ✓ Station {row['id']} ({row['name'] or 'unnamed'}): "
                f"{', '.join(capabilities.available_channels()) or 'no channels'}"
            )
        await db.commit()
    return len(rows)


async def run(path: Path, create_schema: bool = False):
    """Seed the configured database from a station file."""
    from weather_collector.database import async_session, create_tables, engine

    logger.info("=" * 60)
    logger.info("Seeding station capability profiles")
    logger.info("=" * 60)

    try:
        if create_schema:
            await create_tables()
        rows = load_stations(path)
        count = await seed_stations(async_session, rows)
    finally:
        await engine.dispose()

    logger.info("=" * 60)
    logger.info(f"Seeded {count} station(s)")
    logger.info("Restart the collector to pick up new stations")
    logger.info("=" * 60)


def main():
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Provision station capability profiles")
    parser.add_argument('path', type=Path, help='JSON file with a list of stations')
    parser.add_argument(
        '--create-tables',
        action='store_true',
        help='Create database tables first'
    )
    args = parser.parse_args()

    setup_logging("seed_stations")
    asyncio.run(run(args.path, args.create_tables))


if __name__ == "__main__":
    main()
