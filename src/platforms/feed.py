"""Feed adapter: reads housing inventory records from a local JSON file.

The file holds either a list of records or an object with a ``listings``
list. Each record follows the housing RawCandidate fields
(id, address, city, state, zip, price, beds, baths, sqft, status, url).
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from src.platforms.base import RawCandidate, SourceAdapter

logger = logging.getLogger(__name__)


class FeedAdapter(SourceAdapter):
    """Housing inventory source backed by a JSON export."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def source_id(self) -> str:
        return "feed"

    async def fetch(self, term: str, region: str, timeout: float) -> list[RawCandidate]:
        try:
            text = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
            data: Any = json.loads(text)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Feed %s unreadable: %s", self._path, e)
            return []

        if isinstance(data, dict):
            data = data.get("listings", [])
        if not isinstance(data, list):
            logger.warning("Feed %s has no listing array", self._path)
            return []

        records = [r for r in data if isinstance(r, dict)]
        logger.info("Read %d records from feed %s", len(records), self._path)
        return records  # type: ignore[return-value]
