"""
Shared fixtures: two related models, a seeded in-memory store and an
application serving them.
"""

import pytest

from autorest import FieldSpec, InMemoryStore, ModelDescriptor, RestConfig, create_app
from autorest.testing import RestClient

USERS = [
    {"givenname": "Dominik", "lastname": "Schreiber"},
    {"givenname": "Hanna", "lastname": "Schreiber"},
    {"givenname": "Anna", "lastname": "Berg"},
]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def users():
    return ModelDescriptor(name="user", fields={"givenname": "string", "lastname": "string"})


@pytest.fixture
def couples():
    return ModelDescriptor(
        name="couple",
        fields={
            "one": FieldSpec(type="integer", references="users.id"),
            "another": FieldSpec(type="integer", references="users.id"),
        },
    )


@pytest.fixture
def models(users, couples):
    return [users, couples]


@pytest.fixture
async def store(models, users, couples):
    """Store with three users and one couple of the first two."""
    store = InMemoryStore()
    store.register(models)
    for user in USERS:
        await store.create(users, user)
    await store.create(couples, {"one": 1, "another": 2})
    return store


@pytest.fixture
def config():
    return RestConfig()


@pytest.fixture
def app(models, store, config):
    return create_app(models, store, config)


@pytest.fixture
def client(app):
    return RestClient(app)
