import asyncio
import json
import logging
import os
from collections.abc import Iterable

import aiofiles
import aiofiles.os

from app.config import get_settings

logger = logging.getLogger(__name__)


class LocalCache:
    """
    Durable local copy of every table, one JSON file per table.

    Rows are plain JSON dicts keyed by their ``id``. Failures to read or write
    the cache are logged and never raised: the cache is the fallback, not the
    source of truth.
    """

    def __init__(self, directory: str):
        self.directory = directory
        self._lock = asyncio.Lock()

    def _path(self, table: str) -> str:
        return os.path.join(self.directory, f"{table}.json")

    async def _read(self, table: str) -> list[dict]:
        path = self._path(table)
        if not await aiofiles.os.path.exists(path):
            return []
        try:
            async with aiofiles.open(path, encoding="utf-8") as fh:
                data = json.loads(await fh.read())
        except (OSError, ValueError) as e:
            logger.warning("Local cache for %s is unreadable, ignoring it: %s", table, e)
            return []
        if not isinstance(data, list):
            logger.warning("Local cache for %s is not a list, ignoring it", table)
            return []
        return [row for row in data if isinstance(row, dict) and row.get("id")]

    async def _write(self, table: str, rows: list[dict]) -> None:
        path = self._path(table)
        tmp_path = f"{path}.tmp"
        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as fh:
                await fh.write(json.dumps(rows, ensure_ascii=False))
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            logger.warning(
                "Could not write local cache for %s at %s: %s", table, path, e
            )

    async def load(self, table: str) -> list[dict]:
        async with self._lock:
            return await self._read(table)

    async def put(self, table: str, row: dict, max_rows: int | None = None) -> None:
        """Insert or replace ``row``. With ``max_rows``, only the newest rows are kept."""
        async with self._lock:
            rows = [r for r in await self._read(table) if r["id"] != row["id"]]
            rows.append(row)
            if max_rows is not None:
                rows = rows[-max_rows:]
            await self._write(table, rows)

    async def remove(self, table: str, ids: Iterable[str]) -> None:
        drop = set(ids)
        if not drop:
            return
        async with self._lock:
            rows = await self._read(table)
            kept = [r for r in rows if r["id"] not in drop]
            if len(kept) != len(rows):
                await self._write(table, kept)

    async def replace(self, table: str, stale_ids: Iterable[str], rows: list[dict]) -> None:
        """Swap the rows in ``stale_ids`` for ``rows`` in one write."""
        drop = set(stale_ids) | {r["id"] for r in rows}
        async with self._lock:
            kept = [r for r in await self._read(table) if r["id"] not in drop]
            await self._write(table, kept + rows)


# Singleton instance
local_cache = LocalCache(get_settings().LOCAL_CACHE_DIR)
