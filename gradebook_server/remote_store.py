"""
Remote collection store backed by the sync service.

This module implements the ``KeyValueStore`` interface over HTTP so a
session can keep a per-user document on the sync service in step with the
local copy. It handles conversion between the core dataclasses and the JSON
documents the service stores.
"""
from __future__ import annotations

import logging
import os
import typing as t
from urllib.parse import quote

import httpx

from gradebook.models import Collection
from gradebook.serialization import collection_from_json, collection_to_json
from services.shared.models import DocumentResponse, SaveDocumentRequest

logger = logging.getLogger(__name__)

# Service URL - configurable via environment variable
SYNC_SERVICE_URL = os.getenv("GRADETRACK_SYNC_URL", "")

# Timeout for document reads and writes (in seconds)
STANDARD_TIMEOUT = float(os.getenv("GRADETRACK_SYNC_TIMEOUT", "30"))


class SyncError(RuntimeError):
    """The sync service could not be reached or rejected a request."""


class RemoteStore:
    """Loads and saves collections as documents on the sync service."""

    def __init__(
            self,
            base_url: str = SYNC_SERVICE_URL,
            timeout: float = STANDARD_TIMEOUT,
            transport: t.Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url:
            raise ValueError("A sync service URL is required (set GRADETRACK_SYNC_URL).")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    @staticmethod
    def _document_path(key: str) -> str:
        # The service decodes the path once, so a raw "/" would split the key
        if "/" in key:
            raise ValueError(f"Storage key {key!r} must not contain '/'; build it with storage_key().")
        return f"/documents/{quote(key, safe='')}"

    async def load(self, key: str) -> Collection:
        """Fetch the document for ``key``; a missing document is an empty collection."""
        path = self._document_path(key)
        try:
            async with self._client() as client:
                response = await client.get(path)
                if response.status_code == 404:
                    return []
                response.raise_for_status()
                document = DocumentResponse.model_validate(response.json())
        except httpx.TimeoutException:
            raise SyncError(f"Loading '{key}' timed out after {self.timeout} seconds")
        except httpx.HTTPStatusError as e:
            raise SyncError(f"HTTP error from sync service: {e.response.status_code} {e.response.text}")
        except httpx.HTTPError as e:
            raise SyncError(f"Error calling sync service: {str(e)}")
        except ValueError as e:
            raise SyncError(f"Malformed document from sync service: {str(e)}")
        return collection_from_json(document.semesters)

    async def save(self, key: str, collection: Collection) -> None:
        path = self._document_path(key)
        request = SaveDocumentRequest(semesters=collection_to_json(collection))
        try:
            async with self._client() as client:
                response = await client.put(path, json=request.model_dump())
                response.raise_for_status()
        except httpx.TimeoutException:
            raise SyncError(f"Saving '{key}' timed out after {self.timeout} seconds")
        except httpx.HTTPStatusError as e:
            raise SyncError(f"HTTP error from sync service: {e.response.status_code} {e.response.text}")
        except httpx.HTTPError as e:
            raise SyncError(f"Error calling sync service: {str(e)}")
        logger.debug("Saved %d semester(s) to %s/documents/%s", len(collection), self.base_url, key)
