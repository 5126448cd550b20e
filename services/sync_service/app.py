"""
FastAPI service holding one collection document per user.

This is the remote half of GradeTrack's storage: clients push their whole
collection after every change and pull it on start-up. Documents are
replaced wholesale (last writer wins); the service never merges edits.
Writes are normalised through the core codec so a stored document is always
well-formed.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException

from gradebook.serialization import collection_from_json, collection_to_json
from services.shared.models import CollectionSummary, DocumentResponse, SaveDocumentRequest
from services.shared.summary import summarize_collection

logger = logging.getLogger(__name__)


# In-memory document storage keyed by storage key ("semesters_<user>")
# In a deployed system, this would be replaced with a persistent database
documents: dict[str, DocumentResponse] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup and cleanup on shutdown."""
    logger.info("Sync service starting with %d document(s)", len(documents))
    yield


app = FastAPI(
    title="GradeTrack Sync Service",
    description="REST API storing one semester collection document per user",
    version="1.0.0",
    lifespan=lifespan,
)


def _get_document(key: str) -> DocumentResponse:
    document = documents.get(key)
    if document is None:
        raise HTTPException(status_code=404, detail=f"No document stored for '{key}'")
    return document


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "sync-service"}


@app.get("/documents/{key}", response_model=DocumentResponse)
async def get_document(key: str) -> DocumentResponse:
    """
    Return the stored collection document for a key.

    Responds 404 when nothing has been saved yet.
    """
    return _get_document(key)


@app.put("/documents/{key}", response_model=DocumentResponse)
async def put_document(key: str, request: SaveDocumentRequest) -> DocumentResponse:
    """
    Replace the collection document for a key.

    The incoming semesters are normalised (missing course and assessment
    lists become empty, numbers are coerced) before they are stored.
    """
    try:
        collection = collection_from_json(request.semesters)
        document = DocumentResponse(
            key=key,
            semesters=collection_to_json(collection),
            updated_at=datetime.now(timezone.utc).isoformat(),
        )
    except Exception as e:
        logger.exception("Failed to store document %s", key)
        raise HTTPException(status_code=500, detail=f"Error storing document: {str(e)}")

    documents[key] = document
    logger.debug("Stored %d semester(s) under %s", len(collection), key)
    return document


@app.delete("/documents/{key}")
async def delete_document(key: str):
    """Delete the document for a key. Deleting a missing document is not an error."""
    removed = documents.pop(key, None) is not None
    return {"key": key, "deleted": removed}


@app.get("/documents/{key}/summary", response_model=CollectionSummary)
async def get_summary(key: str) -> CollectionSummary:
    """
    Summarise a stored collection.

    Returns per-course percentages and letters, per-semester credits and
    GPA, the cumulative GPA, and the current semester.
    """
    document = _get_document(key)
    return summarize_collection(collection_from_json(document.semesters), key=key)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8004)
