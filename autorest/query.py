"""
The engine translating a list endpoint's query string into a store query.

``?limit=5&offset=10&givenname^=Dom&fields=givenname,lastname&include_docs=true``
becomes a :class:`QueryDescriptor` that any store adapter can execute. The
translation never fails: unusable values fall back to defaults or are ignored.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from .config import RestConfig
from .descriptors import ModelDescriptor


class MatchKind(Enum):
    """How a field filter compares the stored value to the pattern."""

    EXACT = "exact"
    ONE_OF = "one_of"
    PREFIX_OR_EXACT = "prefix_or_exact"
    PREFIX = "prefix"
    SUFFIX = "suffix"
    CONTAINS = "contains"


# Query parameter suffix -> match kind, in the order they are checked.
# A later suffix for the same field replaces an earlier one.
FILTER_SUFFIXES: Tuple[Tuple[str, MatchKind], ...] = (
    ("", MatchKind.EXACT),
    ("~", MatchKind.ONE_OF),
    ("|", MatchKind.PREFIX_OR_EXACT),
    ("^", MatchKind.PREFIX),
    ("$", MatchKind.SUFFIX),
    ("*", MatchKind.CONTAINS),
)


@dataclass(frozen=True)
class FieldFilter:
    """A single field condition.

    ``pattern`` is a list of values for ONE_OF, the (coerced) value for EXACT
    and the raw string for the pattern match kinds.
    """

    match: MatchKind
    pattern: Any

    def matches(self, value: Any) -> bool:
        """Reference semantics of the match kinds, case-sensitive."""
        if self.match is MatchKind.EXACT:
            return value == self.pattern
        if self.match is MatchKind.ONE_OF:
            return value in self.pattern
        if value is None:
            return False

        text = str(value)
        if self.match in (MatchKind.PREFIX, MatchKind.PREFIX_OR_EXACT):
            return text.startswith(self.pattern)
        if self.match is MatchKind.SUFFIX:
            return text.endswith(self.pattern)
        return self.pattern in text


@dataclass(frozen=True)
class QueryDescriptor:
    """Backend-agnostic description of a list query.

    Attributes:
        limit: Maximum number of records, >= 0
        offset: Number of records to skip, >= 0
        filters: Field name -> condition; all conditions must hold
        fields: Fields to return (always containing ``id``), or None for all
        include_docs: Whether the client asked for documents instead of URLs
    """

    limit: int = 10
    offset: int = 0
    filters: Mapping[str, FieldFilter] = field(default_factory=dict)
    fields: Optional[FrozenSet[str]] = None
    include_docs: bool = False

    def ids_only(self) -> "QueryDescriptor":
        """Same query, fetching just ``id`` (for URL listings)."""
        return replace(self, fields=frozenset({"id"}))

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(condition.matches(record.get(name)) for name, condition in self.filters.items())


def parse_int(raw: Optional[str], default: int) -> int:
    """Non-negative integer from a query parameter, ``default`` when unusable."""
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 0 else default


def parse_fields(raw: str) -> List[str]:
    """Top-level names of a field selection.

    Accepts a plain list (``a,b``) and the structured form with nested
    selections in parentheses (``a(x,y),b``); nested selections are dropped.
    """
    names: List[str] = []
    depth = 0
    current: List[str] = []
    for char in raw:
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif depth == 0:
            if char == ",":
                names.append("".join(current).strip())
                current = []
            else:
                current.append(char)
    names.append("".join(current).strip())
    return [name for name in names if name]


def is_true(raw: Optional[str]) -> bool:
    return raw == "true"


class QueryTranslator:
    """Turns query parameters into :class:`QueryDescriptor` objects.

    Example:
        >>> translator = QueryTranslator(RestConfig())
        >>> query = translator.parse({"givenname~": "Dominik,Hanna", "limit": "5"}, users)
        >>> query.filters["givenname"].pattern
        ['Dominik', 'Hanna']
    """

    def __init__(self, config: RestConfig):
        self.config = config

    def parse(self, query_params: Mapping[str, str], model: ModelDescriptor) -> QueryDescriptor:
        return QueryDescriptor(
            limit=parse_int(query_params.get("limit"), self.config.default_limit),
            offset=parse_int(query_params.get("offset"), self.config.default_offset),
            filters=self.parse_filters(query_params, model),
            fields=self.parse_projection(query_params, model),
            include_docs=is_true(query_params.get("include_docs")),
        )

    def parse_filters(self, query_params: Mapping[str, str], model: ModelDescriptor) -> Dict[str, FieldFilter]:
        filters: Dict[str, FieldFilter] = {}
        for name in model.public_fields(self.config.bookkeeping_fields):
            for suffix, match in FILTER_SUFFIXES:
                raw = query_params.get(name + suffix)
                if raw is None:
                    continue
                filters[name] = self._build_filter(model, name, match, raw)
        return filters

    def parse_projection(self, query_params: Mapping[str, str], model: ModelDescriptor) -> Optional[FrozenSet[str]]:
        """Fields requested with ``?fields=``, restricted to public fields, plus ``id``."""
        raw = query_params.get("fields")
        if raw is None:
            return None
        public = set(model.public_fields(self.config.bookkeeping_fields))
        return frozenset(name for name in parse_fields(raw) if name in public) | {"id"}

    def _build_filter(self, model: ModelDescriptor, name: str, match: MatchKind, raw: str) -> FieldFilter:
        if match is MatchKind.EXACT:
            return FieldFilter(match, model.coerce(name, raw))
        if match is MatchKind.ONE_OF:
            return FieldFilter(match, [model.coerce(name, value) for value in raw.split(",")])
        return FieldFilter(match, raw)
