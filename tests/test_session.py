"""Tests for the session: start-up reconciliation, background saves and failures."""
import asyncio

import pytest

from gradebook.models import Collection, Semester
from gradebook.serialization import collection_to_json
from gradebook_server.session import GradebookSession
from gradebook_server.store import MemoryStore

from conftest import make_assessment, make_course

KEY = "semesters_u1"


class FailingStore(MemoryStore):
    """A store whose writes always fail."""

    async def save(self, key: str, collection: Collection) -> None:
        raise OSError("disk full")


class SlowStore(MemoryStore):
    """A store that takes a while to write, to expose ordering problems."""

    async def save(self, key: str, collection: Collection) -> None:
        await asyncio.sleep(0.01)
        await super().save(key, collection)


def _semester(id: str, year: int) -> Semester:
    return Semester(id=id, term=id.split("-")[0], year=year)


@pytest.mark.asyncio
async def test_start_without_remote_uses_local() -> None:
    local = MemoryStore({KEY: collection_to_json([_semester("Fall-2024", 2024)])})
    session = GradebookSession(local, user_id="u1")

    await session.start()

    assert [s.id for s in session.collection] == ["Fall-2024"]


@pytest.mark.asyncio
async def test_non_empty_remote_wins_on_start() -> None:
    """The remote document replaces the local one and is written back locally."""
    local = MemoryStore({KEY: collection_to_json([_semester("Fall-2024", 2024)])})
    remote = MemoryStore({KEY: collection_to_json([_semester("Winter-2025", 2025)])})
    session = GradebookSession(local, remote=remote, user_id="u1")

    await session.start()

    assert [s.id for s in session.collection] == ["Winter-2025"]
    assert local.documents[KEY][0]["id"] == "Winter-2025"


@pytest.mark.asyncio
async def test_empty_remote_is_seeded_from_local() -> None:
    local = MemoryStore({KEY: collection_to_json([_semester("Fall-2024", 2024)])})
    remote = MemoryStore()
    session = GradebookSession(local, remote=remote, user_id="u1")

    await session.start()

    assert [s.id for s in session.collection] == ["Fall-2024"]
    assert remote.documents[KEY][0]["id"] == "Fall-2024"


@pytest.mark.asyncio
async def test_mutation_updates_memory_before_save_completes() -> None:
    """The new collection is visible at once; storage catches up after flush()."""
    local = SlowStore()
    session = GradebookSession(local, user_id="u1")
    await session.start()

    session.add_semester(_semester("Fall-2024", 2024))

    assert [s.id for s in session.collection] == ["Fall-2024"]
    assert KEY not in local.documents
    await session.flush()
    assert local.documents[KEY][0]["id"] == "Fall-2024"


@pytest.mark.asyncio
async def test_rapid_mutations_leave_storage_at_latest_value() -> None:
    local = SlowStore()
    remote = SlowStore()
    session = GradebookSession(local, remote=remote, user_id="u1")
    await session.start()

    session.add_semester(_semester("Fall-2024", 2024))
    session.add_course("Fall-2024", make_course("c1", 3, []))
    session.add_assessment("Fall-2024", "c1", make_assessment("a1", 100))
    session.update_assessment("Fall-2024", "c1", "a1", {"score": 91})
    await session.flush()

    for store in (local, remote):
        saved = store.documents[KEY][0]["courses"][0]["assessments"][0]
        assert saved["score"] == 91.0


@pytest.mark.asyncio
async def test_save_failure_is_recorded_and_does_not_roll_back() -> None:
    session = GradebookSession(FailingStore(), user_id="u1")
    await session.start()

    session.add_semester(_semester("Fall-2024", 2024))
    await session.flush()

    assert [s.id for s in session.collection] == ["Fall-2024"]
    assert isinstance(session.last_error, OSError)


@pytest.mark.asyncio
async def test_remote_load_failure_keeps_local_value() -> None:
    class BrokenRemote(MemoryStore):
        async def load(self, key: str) -> Collection:
            raise ConnectionError("offline")

    local = MemoryStore({KEY: collection_to_json([_semester("Fall-2024", 2024)])})
    session = GradebookSession(local, remote=BrokenRemote(), user_id="u1")

    await session.start()

    assert [s.id for s in session.collection] == ["Fall-2024"]
    assert isinstance(session.last_error, ConnectionError)


@pytest.mark.asyncio
async def test_apply_remote_replaces_collection_wholesale() -> None:
    local = MemoryStore()
    remote = MemoryStore()
    session = GradebookSession(local, remote=remote, user_id="u1")
    await session.start()
    session.add_semester(_semester("Fall-2024", 2024))
    await session.flush()
    remote_saves = remote.save_count

    session.apply_remote([{"id": "Spring-2025", "term": "Spring", "year": 2025}])
    await session.flush()

    assert [s.id for s in session.collection] == ["Spring-2025"]
    assert session.collection[0].courses == []
    assert local.documents[KEY][0]["id"] == "Spring-2025"
    assert remote.save_count == remote_saves


@pytest.mark.asyncio
async def test_cascading_delete_through_session() -> None:
    local = MemoryStore()
    session = GradebookSession(local)
    await session.start()
    session.add_semester(_semester("Fall-2024", 2024))
    session.add_course("Fall-2024", make_course("c1", 3, [make_assessment("a1", 50, 90)]))

    session.delete_semester("Fall-2024")
    await session.flush()

    assert session.collection == []
    assert local.documents["semesters_local"] == []


def test_mutation_without_event_loop_saves_synchronously() -> None:
    local = MemoryStore()
    session = GradebookSession(local)
    asyncio.run(session.start())

    session.add_semester(_semester("Fall-2024", 2024))

    assert local.documents["semesters_local"][0]["id"] == "Fall-2024"
