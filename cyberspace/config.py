"""Configuration and environment bootstrapping for cyberspace.

Endpoint constants, fixed limits, the credential cache location and the
debug logging switch all live here so the rest of the package can stay
free of environment lookups.
"""
import logging
import os
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

# Identity service endpoints
SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
REFRESH_URL = "https://securetoken.googleapis.com/v1/token"

# Document store
FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1/projects/{project_id}/databases/(default)/documents"
POSTS_COLLECTION = "posts"
REPLIES_COLLECTION = "replies"
FEED_PAGE_SIZE = 20
REPLIES_LIMIT = 100
HTTP_TIMEOUT = 15

# Environment keys
API_KEY_ENV = "FIREBASE_API_KEY"
PROJECT_ID_ENV = "FIREBASE_PROJECT_ID"
CONFIG_DIR_ENV = "CYBERSPACE_CONFIG_DIR"
DEBUG_ENV = "CYBERSPACE_DEBUG"

DEBUG_LOG_FILE = Path.home() / ".cyberspace_debug.log"


class ConfigError(Exception):
    """Required configuration is missing"""
    pass


def config_dir() -> Path:
    """Directory holding the credential cache (~/.cyberspace by default)."""
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".cyberspace"


def config_path() -> Path:
    return config_dir() / "config.json"


def load_environment() -> Tuple[str, str]:
    """Load .env and return (api_key, project_id).

    Raises ConfigError when either value is missing or empty.
    """
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV, "")
    project_id = os.getenv(PROJECT_ID_ENV, "")
    if not api_key or not project_id:
        raise ConfigError(f"{API_KEY_ENV} and {PROJECT_ID_ENV} must be set")
    return api_key, project_id


def configure_logging() -> logging.Logger:
    """Configure the package logger.

    With CYBERSPACE_DEBUG set, everything at DEBUG goes to
    ~/.cyberspace_debug.log. The terminal belongs to the Textual app, so
    no stream handler is attached.
    """
    logger = logging.getLogger("cyberspace")
    if logger.handlers:
        return logger

    if os.getenv(DEBUG_ENV):
        logger.setLevel(logging.DEBUG)
        try:
            fh = logging.FileHandler(str(DEBUG_LOG_FILE), encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
            logger.addHandler(fh)
        except OSError:
            # an unwritable home directory must not stop the client
            logger.addHandler(logging.NullHandler())
    else:
        logger.setLevel(logging.WARNING)
        logger.addHandler(logging.NullHandler())
    return logger
