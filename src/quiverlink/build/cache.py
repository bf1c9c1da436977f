"""Render cache: url -> artifact records persisted as a JSON array."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from quiverlink.core.errors import FileIoError, atomic_write
from quiverlink.core.models import CacheRecord

logger = logging.getLogger(__name__)


def load(path: str | Path) -> list[CacheRecord]:
    """Read the cache file. Never raises; a missing or corrupt file is an empty cache.

    Entries written by older versions are migrated field by field. Entries
    that cannot be read are dropped with a warning and disappear on the
    next save.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return []
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable cache file %s: %s", path, e)
        return []

    if not isinstance(data, list):
        logger.warning("Ignoring cache file %s: expected a JSON array", path)
        return []

    records: list[CacheRecord] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            logger.warning("Dropping cache entry %d in %s: not an object", index, path)
            continue
        try:
            records.append(CacheRecord.from_dict(entry))
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.warning("Dropping cache entry %d in %s: %s", index, path, e)
    return records


def save(path: str | Path, records: Sequence[CacheRecord]) -> None:
    """Write the full record set as pretty-printed JSON, creating parent dirs."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(path, json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False) + "\n")
    except OSError as e:
        raise FileIoError(path, f"Failed to write cache file {path}: {e}") from e


def get(url: str, records: Sequence[CacheRecord]) -> CacheRecord | None:
    """Return the record for ``url``, if any."""
    for record in records:
        if record.url == url:
            return record
    return None


def changed(url: str, payload: str, records: Sequence[CacheRecord]) -> bool:
    """True when there is no record for ``url`` or its stored payload differs."""
    record = get(url, records)
    if record is None:
        return True
    return record.payload != payload


def put(records: Sequence[CacheRecord], record: CacheRecord) -> list[CacheRecord]:
    """Return a new record list with ``record`` replacing any prior one for its url."""
    return [r for r in records if r.url != record.url] + [record]


def prune(records: Sequence[CacheRecord], keep_urls: Iterable[str]) -> list[CacheRecord]:
    """Return only the records whose url is in ``keep_urls``."""
    keep = set(keep_urls)
    return [r for r in records if r.url in keep]
