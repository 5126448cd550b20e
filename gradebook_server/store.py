# -*- coding: utf-8 -*-
"""Key-value storage for serialized semester collections.

One collection blob is stored per user, or per anonymous local profile,
under the key returned by ``storage_key``.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
import typing as t
from urllib.parse import quote

from gradebook.models import Collection
from gradebook.serialization import collection_from_json, collection_to_json, dumps, loads

logger = logging.getLogger(__name__)

LOCAL_PROFILE = "local"


def storage_key(user_id: t.Optional[str] = None) -> str:
    """Storage key for a user; anonymous use maps to the local profile.

    The user id is percent-encoded, so distinct ids always give distinct keys
    and a key never contains a path separator.
    """
    return f"semesters_{quote(user_id or LOCAL_PROFILE, safe='')}"


@t.runtime_checkable
class KeyValueStore(t.Protocol):
    """Anything that can load and save a collection under a key."""

    async def load(self, key: str) -> Collection:
        ...

    async def save(self, key: str, collection: Collection) -> None:
        ...


class MemoryStore:
    """Keeps JSON-ready blobs in a dict. Used by tests and as a scratch store."""

    def __init__(self, initial: t.Optional[dict[str, t.Any]] = None) -> None:
        self.documents: dict[str, t.Any] = dict(initial or {})
        self.save_count = 0

    async def load(self, key: str) -> Collection:
        return collection_from_json(self.documents.get(key, []))

    async def save(self, key: str, collection: Collection) -> None:
        self.documents[key] = collection_to_json(collection)
        self.save_count += 1


class JsonFileStore:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: t.Union[str, Path]) -> None:
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        # Percent-encoding is reversible, so two keys never share a file
        return self.directory / f"{quote(key, safe='')}.json"

    def read(self, key: str) -> Collection:
        path = self.path_for(key)
        if not path.is_file():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                return loads(f.read())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Ignoring unreadable collection at {path}: {e}")
            return []

    def write(self, key: str, collection: Collection) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(dumps(collection))
            os.replace(tmp_path, path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

    async def load(self, key: str) -> Collection:
        return await asyncio.to_thread(self.read, key)

    async def save(self, key: str, collection: Collection) -> None:
        await asyncio.to_thread(self.write, key, collection)
