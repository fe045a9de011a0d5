from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class JsonFileStore:
    """Flat JSON files under a base directory, one top-level object per file."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def path(self, name: str) -> Path:
        return self.base_dir / name

    def exists(self, name: str) -> bool:
        return self.path(name).is_file()

    def read(self, name: str, default: Optional[Any] = None) -> Any:
        path = self.path(name)
        if not path.is_file():
            return copy.deepcopy(default)
        logger.debug("reading %s", path)
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def write(self, name: str, data: Any, stamp: bool = True, indent: int = 2) -> Any:
        path = self.path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        if stamp and isinstance(data, dict):
            data["lastUpdated"] = datetime.now(timezone.utc).isoformat()
        logger.debug("writing %s", path)
        with path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=indent, ensure_ascii=False)
        return data

    def delete(self, name: str) -> bool:
        path = self.path(name)
        if path.is_file():
            path.unlink()
            return True
        return False
