"""
Configuration for Networking Engine.

Loads .env (private_data/.env first, then repository .env) and resolves
where the store lives. Importing this module is enough to apply the
environment; scripts call setup_logging() once at startup.
"""

import logging
import os

from dotenv import load_dotenv

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))

load_dotenv(os.path.join(ROOT_DIR, "private_data", ".env"))
load_dotenv(os.path.join(ROOT_DIR, ".env"))

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

SNAPSHOT_PATH = os.environ.get(
    "NE_SNAPSHOT_PATH",
    os.path.join(ROOT_DIR, "private_data", "dashboard_snapshot.json"),
)


def get_db_path() -> str:
    """
    Resolve database path with fallback chain:
    1. NE_DB_PATH environment variable
    2. private_data/networking_engine.db (live DB, .gitignored)
    3. data/networking_engine.db (dev/seed DB)
    """
    env_path = os.environ.get("NE_DB_PATH")
    if env_path:
        return env_path

    private = os.path.join(ROOT_DIR, "private_data", "networking_engine.db")
    if os.path.exists(private):
        return private

    return os.path.join(ROOT_DIR, "data", "networking_engine.db")


def get_backend() -> dict:
    """Hosted backend settings. url is empty when running against SQLite."""
    return {
        'url': os.environ.get("NE_BACKEND_URL", ""),
        'api_key': os.environ.get("NE_BACKEND_KEY", ""),
        'user_id': os.environ.get("NE_USER_ID", ""),
    }


def setup_logging(level=None):
    if level is None:
        level = os.environ.get("NE_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
