#!/usr/bin/env python3
"""
Database initialization script for the menu sync service.

This script handles:
- Database creation (for PostgreSQL)
- Running Alembic migrations
- Optional demo data seeding (one menu group per tenant)

Usage:
    python scripts/init_db.py [--seed-data] [--tenant TENANT_ID]
"""

import os
import sys
import argparse
import subprocess
from pathlib import Path
from urllib.parse import urlparse

# add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from menusync.core.config import settings
from menusync.db.session import SessionLocal
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
import logging

# configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_database_if_not_exists():
    """create db if it doesn't exist (PostgreSQL only)."""
    database_url = settings.DATABASE_URL

    if not database_url.startswith("postgresql"):
        logger.info("Database URL is not PostgreSQL, skipping database creation")
        return True

    try:
        parsed = urlparse(database_url)
        database_name = parsed.path[1:]  # Remove leading '/'

        # connect to the maintenance db, autocommit since CREATE DATABASE can't run in a transaction
        postgres_url = f"{parsed.scheme}://{parsed.netloc}/postgres"
        postgres_engine = create_engine(postgres_url, isolation_level="AUTOCOMMIT")

        with postgres_engine.connect() as conn:
            result = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
                {"db_name": database_name}
            )

            if result.fetchone() is None:
                logger.info(f"Creating database: {database_name}")
                conn.execute(text(f'CREATE DATABASE "{database_name}"'))
                logger.info(f"Database {database_name} created successfully")
            else:
                logger.info(f"Database {database_name} already exists")

        postgres_engine.dispose()
        return True

    except SQLAlchemyError as e:
        logger.error(f"Error creating database: {e}")
        return False


def run_migrations():
    """run Alembic migrations to create/update schema."""
    try:
        logger.info("Running Alembic migrations...")
        os.chdir(project_root)

        result = subprocess.run(
            [sys.executable, "-m", "alembic", "upgrade", "head"],
            capture_output=True,
            text=True,
            check=True
        )

        logger.info("Migrations completed successfully")
        logger.debug(f"Migration output: {result.stdout}")
        return True

    except subprocess.CalledProcessError as e:
        logger.error(f"Error running migrations: {e}")
        logger.error(f"Migration error output: {e.stderr}")
        return False


def seed_demo_data(tenant_id: str):
    """create an all-day delivery menu group for the tenant when it has none."""
    from menusync.services.menu_sync.errors import MenuSyncError
    from menusync.services.menu_sync.menu_groups import MenuGroupManager

    db = SessionLocal()
    try:
        manager = MenuGroupManager(db)
        if manager.list(tenant_id):
            logger.info(f"Tenant {tenant_id} already has menu groups, skipping seed")
            return True
        group = manager.create(tenant_id, "All day")
        logger.info(f"Created menu group {group.id} '{group.name}' for tenant {tenant_id}")
        return True
    except (MenuSyncError, SQLAlchemyError) as e:
        logger.error(f"Error seeding data: {e}")
        db.rollback()
        return False
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Initialize the menu sync database")
    parser.add_argument("--seed-data", action="store_true", help="Seed a default menu group")
    parser.add_argument("--tenant", default="demo", help="Tenant id used when seeding")
    args = parser.parse_args()

    logger.info("Starting database initialization...")

    if not create_database_if_not_exists():
        sys.exit(1)

    if not run_migrations():
        sys.exit(1)

    if args.seed_data and not seed_demo_data(args.tenant):
        sys.exit(1)

    logger.info("Database initialization completed")


if __name__ == "__main__":
    main()
