"""Configuration for generated REST endpoints.

Everything the generated routes need beyond the model descriptors and the
store is collected in :class:`RestConfig`, which is passed explicitly to the
query translator, projector, negotiator and route generator.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from .models import Request


@dataclass(frozen=True)
class XMLOptions:
    """How payloads are laid out as XML.

    Attributes:
        singularize_children: Name the items of a list after the singular of
            the enclosing element (``<users><user/></users>``). When False,
            items are named ``item_element``.
        allow_attributes: Render dict keys that start with ``attribute_prefix``
            as XML attributes of the enclosing element instead of child elements.
        attribute_prefix: Prefix marking attribute keys.
        manifest: Emit the ``<?xml ...?>`` declaration.
        item_element: Element name used for list items that cannot be singularized.
        indent: Indentation per level, or None for a compact document.
    """

    singularize_children: bool = True
    allow_attributes: bool = True
    attribute_prefix: str = "_"
    manifest: bool = True
    item_element: str = "item"
    indent: Optional[str] = "  "


@dataclass(frozen=True)
class RestConfig:
    """Configuration shared by all generated endpoints.

    Attributes:
        default_limit: ``limit`` used when the query string has none (or an invalid one).
        default_offset: ``offset`` used when the query string has none (or an invalid one).
        bookkeeping_fields: Store-maintained fields that are never filtered on
            and never exposed.
        cascade_delete: Whether deleting resources also deletes records of other
            models referencing them.
        base_url: Absolute or relative URL prefix used for every generated link.
            When None, the ASGI root path plus the mount prefix is used.
        default_representation: Representation used when neither a path
            extension nor the Accept header select one.
        xml: XML layout options.

    Examples:
        # Defaults: limit 10, offset 0, cascading deletes
        RestConfig()

        # Larger pages, links relative to a public host
        RestConfig(default_limit=50, base_url="https://api.example.com/v1")
    """

    default_limit: int = 10
    default_offset: int = 0
    bookkeeping_fields: Tuple[str, ...] = ("created_at", "updated_at")
    cascade_delete: bool = True
    base_url: Optional[str] = None
    default_representation: str = "json"
    xml: XMLOptions = field(default_factory=XMLOptions)

    def validate(self) -> None:
        """Reject configurations that cannot produce valid responses."""
        if self.default_limit < 0:
            raise ValueError("default_limit must be >= 0")
        if self.default_offset < 0:
            raise ValueError("default_offset must be >= 0")
        if self.default_representation not in ("json", "xml", "yml"):
            raise ValueError(
                f"default_representation must be one of json, xml, yml; got {self.default_representation!r}"
            )

    def base_url_for(self, request: "Request") -> str:
        """Prefix of generated links for a request, without trailing slash."""
        if self.base_url is not None:
            return self.base_url.rstrip("/")
        return request.base_url
