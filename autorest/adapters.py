"""
ASGI adapter for running autorest applications on ASGI servers
(Uvicorn, Hypercorn, Daphne, ...).
"""

import logging
import urllib.parse
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Tuple

from .models import HTTPMethod, MultiValueHeaders, Request, Response

if TYPE_CHECKING:
    from .application import RestApplication

logger = logging.getLogger(__name__)


class ASGIAdapter:
    """
    ASGI 3.0 adapter for autorest applications.

    The adapter handles:
    - Converting ASGI scope/receive/send to a :class:`Request`
    - Awaiting the application on the server's event loop
    - Converting the :class:`Response` back to ASGI messages
    - The lifespan protocol (startup and shutdown handlers)

    The ASGI ``root_path`` is kept on the request, so links generated behind
    a reverse proxy or inside a parent application carry the right prefix.

    Example:
        ```python
        from autorest import InMemoryStore, create_app
        from autorest.adapters import ASGIAdapter

        asgi_app = ASGIAdapter(create_app([users], InMemoryStore(), prefix="/api"))

        # uvicorn module:asgi_app
        ```
    """

    def __init__(self, app: "RestApplication"):
        self.app = app

    async def __call__(
        self,
        scope: Dict[str, Any],
        receive: Callable[[], Awaitable[Dict[str, Any]]],
        send: Callable[[Dict[str, Any]], Awaitable[None]],
    ):
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            await send({
                "type": "http.response.start",
                "status": 404,
                "headers": [[b"content-type", b"text/plain"]],
            })
            await send({
                "type": "http.response.body",
                "body": b"Not Found - Only HTTP protocol is supported",
            })
            return

        try:
            request = await self._scope_to_request(scope, receive)
        except ValueError as e:
            logger.warning(f"Rejected request {scope.get('method')} {scope.get('path')}: {e}")
            response = Response(status_code=400, body={"reason": "Bad Request"}, content_type="application/json")
        else:
            response = await self.app.execute(request)
        await self._response_to_asgi(response, send)

    async def _handle_lifespan(self, receive, send):
        """Run the application's startup and shutdown handlers."""
        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                try:
                    await self.app.startup()
                except Exception as e:
                    logger.error(f"Startup failed: {e}", exc_info=True)
                    await send({"type": "lifespan.startup.failed", "message": str(e)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif message["type"] == "lifespan.shutdown":
                await self.app.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _scope_to_request(self, scope: Dict[str, Any], receive) -> Request:
        """
        Build a Request from the ASGI scope, reading the whole body.

        Raises:
            ValueError: If the method is not supported
        """
        method = HTTPMethod(scope["method"])
        root_path = scope.get("root_path", "")
        path = scope["path"]
        # Some servers include root_path in path
        if root_path and path.startswith(root_path):
            path = path[len(root_path):] or "/"

        query_string = scope.get("query_string", b"").decode("utf-8")
        # First value wins for repeated parameters
        query_params: Dict[str, str] = {}
        for name, value in urllib.parse.parse_qsl(query_string, keep_blank_values=True):
            query_params.setdefault(name, value)

        headers = MultiValueHeaders()
        for header_name, header_value in scope.get("headers", []):
            headers.add(header_name.decode("latin-1").lower(), header_value.decode("latin-1"))

        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)
        body = b"".join(chunks)

        return Request(
            method=method,
            path=path,
            headers=headers,
            body=body or None,
            query_params=query_params,
            root_path=root_path,
        )

    def _prepare_asgi_headers(self, response: Response) -> List[Tuple[bytes, bytes]]:
        return [
            (name.lower().encode("latin-1"), str(value).encode("latin-1"))
            for name, value in response.headers.items_all()
        ]

    async def _response_to_asgi(self, response: Response, send):
        await send({
            "type": "http.response.start",
            "status": int(response.status_code),
            "headers": self._prepare_asgi_headers(response),
        })
        await send({
            "type": "http.response.body",
            "body": response.body_bytes(),
        })
