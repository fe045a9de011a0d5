"""Read the whole tree of the legacy realtime database.

The tree is either fetched over the database's REST interface
(``GET <url>/.json``) or loaded from a JSON export on disk.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60


class RealtimeSourceError(Exception):
    pass


def fetch_tree(base_url: str, secret: Optional[str] = None, timeout: int = REQUEST_TIMEOUT) -> Optional[dict]:
    url = f"{base_url.rstrip('/')}/.json"
    params = {"auth": secret} if secret else None
    logger.info("fetching realtime database tree from %s", base_url)
    try:
        r = requests.get(url, params=params, headers={"Accept": "application/json"}, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as exc:
        raise RealtimeSourceError(f"could not read realtime database: {exc}") from exc
    return r.json()


def load_export(path: str | Path) -> Optional[dict]:
    path = Path(path)
    if not path.is_file():
        raise RealtimeSourceError(f"realtime export not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def read_tree(
    base_url: Optional[str] = None,
    secret: Optional[str] = None,
    export_path: Optional[str] = None,
) -> Optional[dict[str, Any]]:
    """Return the root object, or None when no source is configured or it is empty."""
    if export_path:
        tree = load_export(export_path)
    elif base_url:
        tree = fetch_tree(base_url, secret)
    else:
        logger.info("no realtime database source configured")
        return None
    if not tree:
        logger.info("realtime database is empty")
        return None
    if not isinstance(tree, dict):
        raise RealtimeSourceError("realtime database root is not an object")
    logger.info("found realtime collections: %s", ", ".join(tree))
    return tree
