"""
In-process client for exercising an application without a server.
"""

import json
from typing import Any, Dict, Optional

from .application import RestApplication
from .models import HTTPMethod, Request, Response


class RestClient:
    """Sends requests straight to :meth:`RestApplication.execute`.

    Dict and list bodies are sent as JSON, strings as UTF-8 text with the
    given Content-Type.

    Example:
        >>> client = RestClient(app)
        >>> response = await client.get("/users/1", accept="application/xml")
        >>> response.status_code
        200
    """

    def __init__(self, app: RestApplication, root_path: str = ""):
        self.app = app
        self.root_path = root_path

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        accept: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Response:
        request_headers = dict(headers or {})
        if accept is not None:
            request_headers["Accept"] = accept

        encoded: Optional[bytes] = None
        if isinstance(body, (dict, list)):
            encoded = json.dumps(body).encode("utf-8")
            request_headers.setdefault("Content-Type", content_type or "application/json")
        elif isinstance(body, bytes):
            encoded = body
        elif body is not None:
            encoded = str(body).encode("utf-8")
        if content_type is not None:
            request_headers["Content-Type"] = content_type

        return await self.app.execute(Request(
            method=HTTPMethod(method.upper()),
            path=path,
            headers=request_headers,
            body=encoded,
            query_params=dict(params or {}),
            root_path=self.root_path,
        ))

    async def get(self, path: str, **kwargs) -> Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs) -> Response:
        return await self.request("POST", path, body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs) -> Response:
        return await self.request("PUT", path, body, **kwargs)

    async def delete(self, path: str, **kwargs) -> Response:
        return await self.request("DELETE", path, **kwargs)

    async def options(self, path: str, **kwargs) -> Response:
        return await self.request("OPTIONS", path, **kwargs)
