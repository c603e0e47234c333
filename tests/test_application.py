"""
Tests for request dispatch: method override, status suppression and error mapping.
"""

import pytest

from autorest import HTTPMethod, Request, RestApplication, Router
from autorest.application import apply_method_override
from autorest.store import StoreError
from autorest.testing import RestClient

pytestmark = pytest.mark.anyio


class TestMethodOverride:
    @pytest.mark.parametrize(
        "value,method", [("PUT", HTTPMethod.PUT), ("DELETE", HTTPMethod.DELETE), ("POST", HTTPMethod.POST)]
    )
    def test_override_applied_and_removed(self, value, method):
        request = Request(method=HTTPMethod.GET, path="/users/1", query_params={"method": value, "limit": "1"})
        overridden = apply_method_override(request)
        assert overridden.method is method
        assert overridden.query_params == {"limit": "1"}

    @pytest.mark.parametrize("value", ["GET", "PATCH", "OPTIONS", "BREW", "", "put", "Delete"])
    def test_other_values_ignored(self, value):
        request = Request(method=HTTPMethod.GET, path="/users", query_params={"method": value})
        assert apply_method_override(request) is request

    async def test_get_runs_put_handler(self, client):
        response = await client.get("/users/1", params={"method": "PUT"}, body={"givenname": "Nik"})
        assert response.json() == "/users/1"
        assert (await client.get("/users/1/givenname")).json() == "Nik"

    async def test_get_runs_delete_handler(self, client):
        response = await client.get("/users/3", params={"method": "DELETE"})
        assert response.json() == "/users"
        assert (await client.get("/users/3")).status_code == 404

    async def test_get_runs_post_handler(self, client):
        response = await client.get("/users", params={"method": "POST"}, body={"givenname": "Lena"})
        assert response.json() == "/users/4"


class TestSuppressResponseCodes:
    async def test_catalog_error(self, client):
        response = await client.get("/users/1/unknown", params={"suppress_response_codes": "true"})
        assert response.status_code == 200
        assert response.json() == {
            "reason": "the :field of /:model/:id/:field is unknown.",
            "url": "/_errors/unknown-field",
            "status": 400,
        }

    async def test_store_error(self, client):
        response = await client.get("/users/99", params={"suppress_response_codes": "true"})
        assert response.status_code == 200
        assert response.json()["status"] == 404

    async def test_redirect(self, client):
        response = await client.get("/couples/1/one", params={"suppress_response_codes": "true"})
        assert response.status_code == 200
        assert response.json() == {"location": "/users/1", "status": 302}

    async def test_success_unchanged(self, client):
        response = await client.get("/users/1/givenname", params={"suppress_response_codes": "true"})
        assert response.json() == "Dominik"

    async def test_with_method_override(self, client):
        response = await client.get(
            "/users/1", params={"method": "POST", "suppress_response_codes": "true"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == 400
        assert response.json()["url"] == "/_errors/post-resource-not-allowed"


class TestRouting:
    async def test_unknown_path(self, client):
        response = await client.get("/groups")
        assert response.status_code == 404
        assert response.json() == {"reason": "Not Found"}

    async def test_method_not_allowed(self, client):
        response = await client.request("PATCH", "/users")
        assert response.status_code == 405
        assert response.headers["Allow"] == "DELETE, GET, OPTIONS, POST, PUT"

    async def test_error_negotiated_from_accept(self, client):
        response = await client.get("/groups", accept="text/x-yaml")
        assert response.content_type == "text/x-yaml"


class TestErrorMapping:
    @pytest.fixture
    def failing_client(self):
        router = Router()

        @router.get("/boom")
        async def boom(request):
            raise RuntimeError("secret detail")

        @router.get("/store")
        async def store_failure(request):
            raise StoreError("connection lost")

        app = RestApplication()
        app.mount("/", router)
        return RestClient(app)

    async def test_unexpected_exception(self, failing_client, caplog):
        response = await failing_client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {"reason": "Internal server error"}
        assert "secret detail" in caplog.text

    async def test_generic_store_error(self, failing_client):
        response = await failing_client.get("/store")
        assert response.status_code == 500
        assert response.json() == {"reason": "connection lost"}


class TestLifecycle:
    async def test_startup_and_shutdown(self):
        app = RestApplication()
        calls = []

        @app.on_startup
        def started():
            calls.append("startup")

        @app.on_shutdown
        async def stopped():
            calls.append("shutdown")

        @app.on_shutdown
        def broken():
            raise RuntimeError("ignored")

        await app.startup()
        await app.shutdown()
        assert calls == ["startup", "shutdown"]
