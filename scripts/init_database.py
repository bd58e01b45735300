#!/usr/bin/env python3
"""
Initialize the metadata store tables.

Creates the ``worksheets`` table for the Worksheet Library API. It can be run
standalone or as part of the deployment process.

Usage:
    python scripts/init_database.py            # create tables
    python scripts/init_database.py status     # show row count
    python scripts/init_database.py drop       # drop tables (asks first)

    # With environment file
    ENV_FILE=.env.production python scripts/init_database.py

Environment Variables:
    DATABASE_URL - Full SQLAlchemy async URL
    DATABASE_HOST, DATABASE_PORT, DATABASE_NAME, DATABASE_USER, DATABASE_PASSWORD
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

# Configure logging for CLI output
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def load_settings():
    """Build settings from the selected environment file."""
    from app.core.config import Settings

    env_path = project_root / os.environ.get("ENV_FILE", ".env")
    if env_path.exists():
        logger.info(f"Loaded environment from: {env_path}")
        return Settings(_env_file=env_path)

    logger.warning(f"No environment file found at: {env_path}")
    logger.info("Using system environment variables")
    return Settings(_env_file=None)


async def init_tables():
    """Create all database tables."""
    from app.core.db_client import DatabaseManager

    logger.info("=== Metadata Store Initialization ===")
    db = DatabaseManager.from_settings(load_settings())

    try:
        await db.connect()

        logger.info("Testing database connection...")
        if not await db.test_connection():
            logger.error("Could not connect to database")
            logger.error("Check DATABASE_URL or the DATABASE_* settings")
            sys.exit(1)

        logger.info("Creating tables...")
        await db.create_tables()

        from sqlalchemy import inspect

        async with db.engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

        for table_name in tables:
            logger.info(f"  - {table_name}")
    finally:
        await db.close()

    logger.info("=== Initialization Complete ===")


async def drop_tables():
    """Drop all tables (use with caution!)."""
    from app.core.db_client import DatabaseManager

    logger.warning("=== WARNING: Dropping All Tables ===")

    confirm = input("Are you sure you want to drop all tables? (type 'yes' to confirm): ")
    if confirm.lower() != "yes":
        logger.info("Aborted.")
        return

    db = DatabaseManager.from_settings(load_settings())
    try:
        await db.drop_tables()
    finally:
        await db.close()

    logger.info("All tables dropped.")


async def show_status():
    """Show database status and the number of stored worksheets."""
    from sqlalchemy import func, select
    from sqlalchemy.exc import SQLAlchemyError

    from app.core.db_client import DatabaseManager
    from app.models.db import WorksheetModel

    logger.info("=== Database Status ===")
    db = DatabaseManager.from_settings(load_settings())

    try:
        await db.connect()
        if not await db.test_connection():
            logger.error("Could not connect to database")
            sys.exit(1)

        try:
            async with db.session() as session:
                result = await session.execute(
                    select(func.count()).select_from(WorksheetModel)
                )
                logger.info(f"Worksheets stored: {result.scalar_one()}")
        except SQLAlchemyError as e:
            logger.error(f"Could not read worksheets table: {e}")
            logger.info("Run 'init' to create tables.")
    finally:
        await db.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Initialize the metadata store for the Worksheet Library API"
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="init",
        choices=["init", "drop", "status"],
        help="Command to run (default: init)"
    )

    args = parser.parse_args()

    if args.command == "init":
        asyncio.run(init_tables())
    elif args.command == "drop":
        asyncio.run(drop_tables())
    elif args.command == "status":
        asyncio.run(show_status())


if __name__ == "__main__":
    main()
