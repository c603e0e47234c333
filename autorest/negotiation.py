"""
Content negotiation: choosing a representation and building the response.

The representation is chosen by, in order of precedence:

1. the path extension (``/users.xml``), which must name a known renderer
2. the ``Accept`` header (q-values and wildcards honoured)
3. the configured default representation (JSON)
"""

import logging
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Tuple

from .config import RestConfig
from .content_renderers import ContentRenderer, JSONRenderer, XMLRenderer, YAMLRenderer
from .errors import UnknownTypeError
from .models import Request, Response

logger = logging.getLogger(__name__)

# Additional media types clients commonly send for the same representations
MEDIA_TYPE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "xml": ("text/xml",),
    "yml": ("application/x-yaml", "application/yaml", "text/yaml"),
}


def parse_accept(accept_header: str) -> List[Tuple[str, float]]:
    """Parse an Accept header into (media range, quality) pairs, in header order.

    Malformed quality values count as 1.0; ranges with q=0 are kept so they
    can exclude a type.
    """
    ranges = []
    for part in accept_header.split(","):
        pieces = [piece.strip() for piece in part.split(";")]
        media_range = pieces[0].lower()
        if not media_range:
            continue
        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.partition("=")
            if name.strip() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 1.0
        ranges.append((media_range, quality))
    return ranges


def suppress_requested(request: Request) -> bool:
    """Whether the client asked to always receive transport status 200."""
    return request.query_params.get("suppress_response_codes") == "true"


class ContentNegotiator:
    """Selects renderers and renders payloads into responses.

    Example:
        >>> negotiator = ContentNegotiator(RestConfig())
        >>> response = negotiator.negotiate(request, "users", ["/users/1"], extension="yml")
        >>> response.content_type
        'text/x-yaml'
    """

    def __init__(self, config: RestConfig):
        self.config = config
        renderers: List[ContentRenderer] = [JSONRenderer(), XMLRenderer(config.xml), YAMLRenderer()]
        # The default representation wins ties (e.g. Accept: */*)
        renderers.sort(key=lambda renderer: renderer.extension != config.default_representation)
        self.renderers = renderers
        self._by_extension = {renderer.extension: renderer for renderer in renderers}

    @property
    def extensions(self) -> List[str]:
        return list(self._by_extension)

    def renderer_for_extension(self, extension: str) -> ContentRenderer:
        """
        Raises:
            UnknownTypeError: If no renderer uses this extension
        """
        try:
            return self._by_extension[extension]
        except KeyError:
            raise UnknownTypeError(f"path extension '{extension}' none of ({'|'.join(self.extensions)})") from None

    def renderer_for_accept(self, accept_header: str) -> ContentRenderer:
        """Best renderer for an Accept header, the default one when nothing matches."""
        best: Optional[Tuple[Tuple[float, int, int, int], ContentRenderer]] = None
        ranges = parse_accept(accept_header)

        for renderer_index, renderer in enumerate(self.renderers):
            media_types = (renderer.media_type,) + MEDIA_TYPE_ALIASES.get(renderer.extension, ())
            for range_index, (media_range, quality) in enumerate(ranges):
                specificity = self._specificity(media_range, media_types)
                if specificity < 0 or quality <= 0:
                    continue
                score = (quality, specificity, -range_index, -renderer_index)
                if best is None or score > best[0]:
                    best = (score, renderer)

        if best is None:
            return self.renderers[0]
        return best[1]

    @staticmethod
    def _specificity(media_range: str, media_types: Tuple[str, ...]) -> int:
        """2 for an exact match, 1 for ``type/*``, 0 for ``*/*``, -1 for no match."""
        if media_range in media_types:
            return 2
        if media_range == "*/*" or media_range == "*":
            return 0
        if media_range.endswith("/*"):
            major = media_range[:-2]
            if any(media_type.split("/")[0] == major for media_type in media_types):
                return 1
        return -1

    def select(self, request: Request, extension: Optional[str] = None) -> ContentRenderer:
        if extension is not None:
            return self.renderer_for_extension(extension)
        return self.renderer_for_accept(request.get_accept_header())

    def negotiate(
        self,
        request: Request,
        root_label: str,
        payload: Any,
        status: int = HTTPStatus.OK,
        extension: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Response:
        """Render ``payload`` in the negotiated representation.

        Args:
            request: The request being answered
            root_label: Root element name for XML (collection name, ``endpoints``, ``error``)
            payload: JSON-like data
            status: Intended HTTP status
            extension: Path extension, if the route captured one
            headers: Extra response headers

        Raises:
            UnknownTypeError: If ``extension`` names no renderer
        """
        renderer = self.select(request, extension)
        status, payload = self._apply_suppression(request, int(status), payload)

        response = Response(
            status_code=status,
            body=renderer.render(payload, root_label),
            headers=headers,
            content_type=renderer.media_type,
        )
        if extension is None:
            response.headers["Vary"] = "Accept"
        return response

    def redirect(self, request: Request, location: str) -> Response:
        """302 to ``location``; the body only matters when status codes are suppressed."""
        if suppress_requested(request):
            return self.negotiate(
                request,
                "redirect",
                {"location": location},
                status=HTTPStatus.FOUND,
                headers={"Location": location},
            )
        return Response(status_code=HTTPStatus.FOUND, headers={"Location": location})

    @staticmethod
    def _apply_suppression(request: Request, status: int, payload: Any) -> Tuple[int, Any]:
        if status == HTTPStatus.OK or not suppress_requested(request):
            return status, payload
        logger.debug(f"Suppressing status {status} for {request.method.value} {request.path}")
        if isinstance(payload, dict):
            return HTTPStatus.OK, {**payload, "status": status}
        return HTTPStatus.OK, {"status": status, "body": payload}
