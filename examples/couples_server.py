"""
Example: serving users and couples over ASGI.

Two models, one referencing the other, stored in memory and seeded on startup.

Run with:
    uvicorn examples.couples_server:app --reload

Then try:
    curl localhost:8000/api/
    curl localhost:8000/api/users.xml
    curl 'localhost:8000/api/users?lastname^=Schr&include_docs=true'
    curl -i localhost:8000/api/couples/1/one
    curl 'localhost:8000/api/couples/1?include_docs=true'
    curl 'localhost:8000/api/users/1?method=DELETE&suppress_response_codes=true'
"""

import logging

from autorest import FieldSpec, InMemoryStore, ModelDescriptor, RestConfig, create_app
from autorest.adapters import ASGIAdapter

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

users = ModelDescriptor(name="user", fields={"givenname": "string", "lastname": "string"})
couples = ModelDescriptor(
    name="couple",
    fields={
        "one": FieldSpec(type="integer", references="users.id"),
        "another": FieldSpec(type="integer", references="users.id"),
    },
)

store = InMemoryStore()
rest_app = create_app([users, couples], store, RestConfig(default_limit=25), prefix="/api")


@rest_app.on_startup
async def seed():
    for givenname in ("Dominik", "Hanna"):
        await store.create(users, {"givenname": givenname, "lastname": "Schreiber"})
    await store.create(couples, {"one": 1, "another": 2})


app = ASGIAdapter(rest_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
