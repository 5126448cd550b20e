"""The single owner of a user's in-memory collection.

A ``GradebookSession`` applies mutations one after another, replaces its
collection immediately, and writes the new value to its stores in the
background. Storage is eventually consistent with memory: a failed write is
logged and remembered in ``last_error`` but never rolls the collection back.
"""
from __future__ import annotations

import asyncio
import logging
import typing as t

from gradebook import aggregation, mutations
from gradebook.models import Assessment, Collection, Course, Semester
from gradebook.serialization import collection_from_json
from gradebook_server.store import KeyValueStore, storage_key

logger = logging.getLogger(__name__)


class GradebookSession:
    """Holds the authoritative collection for one user and persists every change."""

    def __init__(
            self,
            local: KeyValueStore,
            remote: t.Optional[KeyValueStore] = None,
            user_id: t.Optional[str] = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.user_id = user_id
        self.key = storage_key(user_id)
        self.collection: Collection = []
        self.last_error: t.Optional[BaseException] = None
        self._pending: set[asyncio.Task] = set()
        self._write_lock: t.Optional[asyncio.Lock] = None

    # -----------------------------
    # Loading
    # -----------------------------

    async def start(self) -> Collection:
        """Load the collection, preferring a non-empty remote document.

        When the remote has nothing usable, the local value seeds it.
        """
        try:
            local_value = await self.local.load(self.key)
        except Exception as e:
            logger.error(f"Error loading local collection {self.key}: {e}")
            self.last_error = e
            local_value = []
        self.collection = local_value

        if self.remote is None:
            return self.collection

        try:
            remote_value = await self.remote.load(self.key)
        except Exception as e:
            logger.error(f"Error loading remote collection {self.key}: {e}")
            self.last_error = e
            return self.collection

        if remote_value:
            logger.info("Using remote collection for %s (%d semester(s))", self.key, len(remote_value))
            self.collection = remote_value
            await self._write(self.local)
        else:
            logger.info("Seeding remote collection for %s from local copy", self.key)
            await self._write(self.remote)
        return self.collection

    def apply_remote(self, data: t.Any) -> Collection:
        """Replace the collection with a document pushed from another device.

        ``data`` is decoded JSON or an already-built collection. The remote
        value wins wholesale; only the local copy is rewritten.
        """
        if isinstance(data, list) and all(isinstance(s, Semester) for s in data):
            incoming = list(data)
        else:
            incoming = collection_from_json(data)
        self.collection = incoming
        self._schedule(self._write, self.local)
        return self.collection

    # -----------------------------
    # Persistence
    # -----------------------------

    def _lock(self) -> asyncio.Lock:
        if self._write_lock is None:
            self._write_lock = asyncio.Lock()
        return self._write_lock

    async def _write(self, store: KeyValueStore) -> None:
        # Always write the newest collection so a slow earlier save cannot
        # land after a later one with stale data.
        async with self._lock():
            try:
                await store.save(self.key, self.collection)
            except Exception as e:
                logger.error(f"Error saving collection {self.key} to {type(store).__name__}: {e}")
                self.last_error = e

    async def _write_all(self) -> None:
        await self._write(self.local)
        if self.remote is not None:
            await self._write(self.remote)

    def _schedule(self, fn: t.Callable[..., t.Awaitable[None]], *args: t.Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (plain scripts): write before returning
            asyncio.run(fn(*args))
            return
        task = loop.create_task(fn(*args))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> None:
        """Wait for every scheduled save to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _commit(self, collection: Collection) -> Collection:
        self.collection = collection
        self._schedule(self._write_all)
        return collection

    # -----------------------------
    # Mutations
    # -----------------------------

    def add_semester(self, semester: Semester) -> Collection:
        return self._commit(mutations.add_semester(self.collection, semester))

    def delete_semester(self, semester_id: str) -> Collection:
        return self._commit(mutations.delete_semester(self.collection, semester_id))

    def update_semester(self, semester_id: str, patch: mutations.SemesterPatch) -> Collection:
        return self._commit(mutations.update_semester(self.collection, semester_id, patch))

    def set_current_semester(self, semester_id: str) -> Collection:
        return self._commit(mutations.set_current_semester(self.collection, semester_id))

    def add_course(self, semester_id: str, course: Course) -> Collection:
        return self._commit(mutations.add_course(self.collection, semester_id, course))

    def delete_course(self, semester_id: str, course_id: str) -> Collection:
        return self._commit(mutations.delete_course(self.collection, semester_id, course_id))

    def update_course(self, semester_id: str, course_id: str, patch: mutations.CoursePatch) -> Collection:
        return self._commit(mutations.update_course(self.collection, semester_id, course_id, patch))

    def add_assessment(self, semester_id: str, course_id: str, assessment: Assessment) -> Collection:
        return self._commit(mutations.add_assessment(self.collection, semester_id, course_id, assessment))

    def delete_assessment(self, semester_id: str, course_id: str, assessment_id: str) -> Collection:
        return self._commit(
            mutations.delete_assessment(self.collection, semester_id, course_id, assessment_id)
        )

    def update_assessment(self, semester_id: str, course_id: str, assessment_id: str,
                          patch: mutations.AssessmentPatch) -> Collection:
        return self._commit(
            mutations.update_assessment(self.collection, semester_id, course_id, assessment_id, patch)
        )

    def clear_all(self) -> Collection:
        return self._commit(mutations.clear_all(self.collection))

    # -----------------------------
    # Reads
    # -----------------------------

    def get_semester(self, semester_id: str) -> t.Optional[Semester]:
        return next((s for s in self.collection if s.id == semester_id), None)

    def get_course(self, semester_id: str, course_id: str) -> t.Optional[Course]:
        semester = self.get_semester(semester_id)
        if semester is None:
            return None
        return next((c for c in semester.courses if c.id == course_id), None)

    def current_semester(self) -> t.Optional[Semester]:
        return aggregation.current_semester(self.collection)

    def cumulative_gpa(self) -> t.Optional[float]:
        return aggregation.cumulative_gpa(self.collection)
