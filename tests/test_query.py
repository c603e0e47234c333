"""
Tests for the query string translation.
"""

import pytest

from autorest import ModelDescriptor, RestConfig
from autorest.query import (
    FieldFilter,
    MatchKind,
    QueryDescriptor,
    QueryTranslator,
    parse_fields,
    parse_int,
)


@pytest.fixture
def translator():
    return QueryTranslator(RestConfig())


@pytest.fixture
def people():
    return ModelDescriptor(
        name="person",
        fields={"givenname": "string", "age": "integer", "active": "boolean", "updated_at": "datetime"},
    )


class TestPaging:
    def test_defaults(self, translator, people):
        query = translator.parse({}, people)
        assert query == QueryDescriptor(limit=10, offset=0, filters={}, fields=None, include_docs=False)

    def test_limit_and_offset(self, translator, people):
        query = translator.parse({"limit": "5", "offset": "20"}, people)
        assert (query.limit, query.offset) == (5, 20)

    @pytest.mark.parametrize("raw", ["ten", "", "-1", "2.5"])
    def test_unusable_values_fall_back(self, translator, people, raw):
        query = translator.parse({"limit": raw, "offset": raw}, people)
        assert (query.limit, query.offset) == (10, 0)

    def test_configured_defaults(self, people):
        translator = QueryTranslator(RestConfig(default_limit=50, default_offset=5))
        query = translator.parse({}, people)
        assert (query.limit, query.offset) == (50, 5)

    def test_parse_int(self):
        assert parse_int(None, 3) == 3
        assert parse_int("0", 3) == 0


class TestFilters:
    @pytest.mark.parametrize(
        "param,match,pattern",
        [
            ("givenname", MatchKind.EXACT, "Dominik"),
            ("givenname|", MatchKind.PREFIX_OR_EXACT, "Dominik"),
            ("givenname^", MatchKind.PREFIX, "Dominik"),
            ("givenname$", MatchKind.SUFFIX, "Dominik"),
            ("givenname*", MatchKind.CONTAINS, "Dominik"),
        ],
    )
    def test_suffixes(self, translator, people, param, match, pattern):
        query = translator.parse({param: "Dominik"}, people)
        assert query.filters == {"givenname": FieldFilter(match, pattern)}

    def test_one_of(self, translator, people):
        query = translator.parse({"givenname~": "Dominik,Hanna"}, people)
        assert query.filters["givenname"] == FieldFilter(MatchKind.ONE_OF, ["Dominik", "Hanna"])

    def test_values_are_coerced(self, translator, people):
        query = translator.parse({"age": "42", "active": "true", "age~": "1,2"}, people)
        assert query.filters["active"].pattern is True
        # "~" is checked after the exact match and replaces it
        assert query.filters["age"] == FieldFilter(MatchKind.ONE_OF, [1, 2])

    def test_pattern_values_stay_strings(self, translator, people):
        query = translator.parse({"age^": "4"}, people)
        assert query.filters["age"].pattern == "4"

    def test_filters_on_several_fields(self, translator, people):
        query = translator.parse({"givenname^": "Do", "age": "42"}, people)
        assert set(query.filters) == {"givenname", "age"}

    def test_unknown_and_bookkeeping_fields_ignored(self, translator, people):
        query = translator.parse({"nickname": "Dom", "updated_at": "2020-01-01", "limit": "3"}, people)
        assert query.filters == {}


class TestFieldFilter:
    @pytest.mark.parametrize(
        "match,pattern,value,expected",
        [
            (MatchKind.EXACT, "Dominik", "Dominik", True),
            (MatchKind.EXACT, "dominik", "Dominik", False),
            (MatchKind.ONE_OF, ["Anna", "Hanna"], "Hanna", True),
            (MatchKind.PREFIX_OR_EXACT, "Schreiber", "Schreiber", True),
            (MatchKind.PREFIX_OR_EXACT, "Sch", "Schreiber", True),
            (MatchKind.PREFIX, "Sch", "Berg", False),
            (MatchKind.SUFFIX, "ber", "Schreiber", True),
            (MatchKind.CONTAINS, "rei", "Schreiber", True),
            (MatchKind.CONTAINS, "REI", "Schreiber", False),
            (MatchKind.PREFIX, "a", None, False),
        ],
    )
    def test_matches(self, match, pattern, value, expected):
        assert FieldFilter(match, pattern).matches(value) is expected


class TestProjection:
    def test_fields_always_include_id(self, translator, people):
        query = translator.parse({"fields": "givenname,age"}, people)
        assert query.fields == frozenset({"id", "givenname", "age"})

    def test_structured_fields(self, translator, people):
        query = translator.parse({"fields": "givenname(first,last),age"}, people)
        assert query.fields == frozenset({"id", "givenname", "age"})

    def test_unknown_fields_dropped(self, translator, people):
        query = translator.parse({"fields": "nickname,updated_at"}, people)
        assert query.fields == frozenset({"id"})

    def test_parse_fields(self):
        assert parse_fields("a, b(c,d(e)),f") == ["a", "b", "f"]
        assert parse_fields("") == []

    def test_include_docs(self, translator, people):
        assert translator.parse({"include_docs": "true"}, people).include_docs is True
        assert translator.parse({"include_docs": "yes"}, people).include_docs is False

    def test_ids_only(self, translator, people):
        query = translator.parse({"fields": "givenname", "givenname": "x"}, people).ids_only()
        assert query.fields == frozenset({"id"})
        assert "givenname" in query.filters
