"""
Core HTTP data models for autorest.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Tuple, Union


class MultiValueHeaders:
    """
    Case-insensitive headers that keep repeated names.

    The ASGI adapter adds every header line a client sent; responses set
    single values and are serialized with :meth:`items_all`.

    Example::

        headers = MultiValueHeaders({"Content-Type": "application/xml"})
        headers.add("Vary", "Accept")
        headers["content-type"]  # 'application/xml'
    """

    def __init__(self, data=None):
        # lowercase name -> [(name as given, value), ...]
        self._headers: Dict[str, List[Tuple[str, str]]] = {}
        if isinstance(data, dict):
            data = data.items()
        for name, value in data or ():
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        self._headers.setdefault(name.lower(), []).append((name, value))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value for a header name, ``default`` when absent."""
        values = self._headers.get(name.lower())
        if values:
            return values[0][1]
        return default

    def set(self, name: str, value: str) -> None:
        """Replace every value of a header with a single one."""
        self._headers[name.lower()] = [(name, value)]

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._headers

    def items_all(self) -> List[Tuple[str, str]]:
        """All (name, value) pairs, repeated names included."""
        return [pair for values in self._headers.values() for pair in values]


class HTTPMethod(Enum):
    """Enumeration of supported HTTP methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"


@dataclass
class Request:
    """Represents an HTTP request.

    ``root_path`` is the ASGI root path of the application (the part of the URL
    a reverse proxy or parent application consumed). ``mount_path`` is filled in
    by the application with the prefix of the router the request was routed to.
    """

    method: HTTPMethod
    path: str
    headers: Union[Dict[str, str], MultiValueHeaders] = field(default_factory=dict)
    body: Optional[bytes] = None
    query_params: Dict[str, str] = field(default_factory=dict)
    path_params: Dict[str, str] = field(default_factory=dict)
    root_path: str = ""
    mount_path: str = ""

    def __post_init__(self):
        """Ensure headers is a MultiValueHeaders for case-insensitive header lookups."""
        if not isinstance(self.headers, MultiValueHeaders):
            self.headers = MultiValueHeaders(self.headers)
        if self.query_params is None:
            self.query_params = {}
        if self.path_params is None:
            self.path_params = {}

    def get_accept_header(self) -> str:
        """Get the Accept header, defaulting to */* if not present."""
        return self.headers.get("accept") or "*/*"

    def get_content_type(self) -> Optional[str]:
        """Get the Content-Type header."""
        return self.headers.get("content-type")

    @property
    def base_url(self) -> str:
        """URL prefix under which the routed endpoint set is reachable (no trailing slash)."""
        prefix = self.root_path.rstrip("/") + self.mount_path
        return prefix.rstrip("/")


@dataclass
class Response:
    """Represents an HTTP response.

    The body can be:
    - str: Will be encoded to UTF-8 bytes
    - bytes: Used directly
    - dict/list: Will be JSON-encoded
    - None: Empty response body
    """

    status_code: int
    body: Optional[Union[str, bytes, dict, list]] = None
    headers: Optional[Union[Dict[str, str], MultiValueHeaders]] = None
    content_type: Optional[str] = None

    def __post_init__(self):
        if self.headers is None:
            self.headers = MultiValueHeaders()
        elif not isinstance(self.headers, MultiValueHeaders):
            self.headers = MultiValueHeaders(self.headers)

        if self.content_type:
            self.headers["Content-Type"] = self.content_type

        # Content-Length is derived from the encoded body (empty for 204)
        if self.status_code != HTTPStatus.NO_CONTENT:
            self.headers["Content-Length"] = str(len(self.body_bytes()))

    def body_bytes(self) -> bytes:
        """Encode the body the way it is sent on the wire."""
        if self.body is None:
            return b""
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, (dict, list)):
            return json.dumps(self.body).encode("utf-8")
        return str(self.body).encode("utf-8")

    def text(self) -> str:
        return self.body_bytes().decode("utf-8")

    def json(self) -> Any:
        """Decode a JSON body."""
        return json.loads(self.body_bytes())
