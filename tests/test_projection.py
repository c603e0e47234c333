"""
Tests for record projection and the concurrent fan-out helper.
"""

import anyio
import pytest

from autorest import RestConfig
from autorest.concurrency import gather
from autorest.descriptors import resolve_references
from autorest.projection import ResourceProjector, collection_url, resource_url
from autorest.store import NotFoundError

pytestmark = pytest.mark.anyio


@pytest.fixture
def projector(store, models):
    return ResourceProjector(store, resolve_references(models), RestConfig())


def test_resource_url():
    assert resource_url("/api", "users", 1) == "/api/users/1"
    assert resource_url("", "users", "a") == "/users/a"
    assert collection_url("https://example.com", "users") == "https://example.com/users"


class TestProject:
    async def test_bookkeeping_fields_stripped(self, projector, store, users):
        record = await store.find_by_id(users, 1)
        assert await projector.project(record, users, "") == {
            "id": 1,
            "givenname": "Dominik",
            "lastname": "Schreiber",
        }

    async def test_foreign_keys_become_urls(self, projector, store, couples):
        record = await store.find_by_id(couples, 1)
        assert await projector.project(record, couples, "/api") == {
            "id": 1,
            "one": "/api/users/1",
            "another": "/api/users/2",
        }

    async def test_null_foreign_key_stays_null(self, projector, store, couples):
        record = await store.create(couples, {"one": 3})
        public = await projector.project(record, couples, "", expand=True)
        assert public["another"] is None
        assert public["one"]["givenname"] == "Anna"

    async def test_expand_inlines_targets(self, projector, store, couples):
        record = await store.find_by_id(couples, 1)
        public = await projector.project(record, couples, "", expand=True)
        assert public == {
            "id": 1,
            "one": {"id": 1, "givenname": "Dominik", "lastname": "Schreiber"},
            "another": {"id": 2, "givenname": "Hanna", "lastname": "Schreiber"},
        }

    async def test_expand_with_missing_target_fails(self, projector, store, couples):
        record = {"id": 5, "one": 1, "another": 99}
        with pytest.raises(NotFoundError):
            await projector.project(record, couples, "", expand=True)

    async def test_project_many_keeps_order(self, projector, store, users):
        records = [await store.find_by_id(users, id) for id in (3, 1, 2)]
        public = await projector.project_many(records, users, "")
        assert [record["id"] for record in public] == [3, 1, 2]

    async def test_project_many_expanding(self, projector, store, couples):
        await store.create(couples, {"one": 3, "another": 1})
        records = [await store.find_by_id(couples, id) for id in (1, 2)]
        public = await projector.project_many(records, couples, "", expand=True)
        assert [record["one"]["givenname"] for record in public] == ["Dominik", "Anna"]


class TestGather:
    async def test_results_in_call_order(self):
        async def delayed(value, delay):
            await anyio.sleep(delay)
            return value

        results = await gather([
            lambda: delayed("slow", 0.02),
            lambda: delayed("fast", 0),
        ])
        assert results == ["slow", "fast"]

    async def test_empty(self):
        assert await gather([]) == []

    async def test_failure_is_raised_unwrapped(self):
        finished = []

        async def fails():
            raise NotFoundError("missing")

        async def slow():
            await anyio.sleep(1)
            finished.append(True)

        with pytest.raises(NotFoundError, match="missing"):
            await gather([slow, fails])
        assert finished == []
