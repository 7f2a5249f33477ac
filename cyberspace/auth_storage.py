"""Credential cache for cyberspace.

The session is written once after a successful sign-in and read once at
startup, as a small JSON object:

    {"id_token": ..., "refresh_token": ..., "user_id": ..., "email": ..., "username": ...}

Functions:
  - load_session(path) -> Optional[Session]   # None when no cache exists
  - save_session(session, path) -> None
  - clear_session(path) -> bool
"""
import json
import logging
import os
from pathlib import Path
from typing import Optional

from .config import config_path
from .data_models import Session

logger = logging.getLogger("cyberspace.auth_storage")

_FIELDS = ("id_token", "refresh_token", "user_id", "email", "username")


class CredentialCacheError(Exception):
    """The credential cache exists but cannot be read"""
    pass


def load_session(path: Optional[Path] = None) -> Optional[Session]:
    """Read the cached session.

    Returns None when the file does not exist. Raises CredentialCacheError
    for any other read or parse problem.
    """
    path = path or config_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise CredentialCacheError(f"could not read {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CredentialCacheError(f"could not parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise CredentialCacheError(f"could not parse {path}: expected a JSON object")

    values = {}
    for key in _FIELDS:
        v = data.get(key)
        values[key] = v if isinstance(v, str) else ""
    logger.debug("auth_storage: loaded session for %s", values["email"] or "<unknown>")
    return Session(**values)


def save_session(session: Session, path: Optional[Path] = None) -> None:
    """Persist the session, creating the config directory if needed."""
    path = path or config_path()
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    payload = json.dumps({key: getattr(session, key) for key in _FIELDS}, indent=2)

    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(payload)
    logger.debug("auth_storage: wrote session to %s", path)


def clear_session(path: Optional[Path] = None) -> bool:
    """Remove the cached session. Returns False if there was none."""
    path = path or config_path()
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    logger.debug("auth_storage: removed %s", path)
    return True
