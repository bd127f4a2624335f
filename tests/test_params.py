"""Tests for perch.http.params — query, form, and merged parameters."""

import pytest

from perch._internal.multimap import MultiValueMapping
from perch.http.forms import FormData
from perch.http.params import Parameters, QueryParams, RequestParameters


class TestQueryParams:
    def test_getitem(self) -> None:
        q = QueryParams(b"q=hello&page=2")
        assert q["q"] == "hello"
        assert q["page"] == "2"

    def test_missing_key_raises(self) -> None:
        q = QueryParams(b"q=hello")
        with pytest.raises(KeyError):
            q["missing"]

    def test_blank_value_is_present(self) -> None:
        q = QueryParams(b"save=&back")
        assert "save" in q
        assert q["save"] == ""
        assert "back" in q

    def test_dotted_names(self) -> None:
        q = QueryParams(b"save.x=10&save.y=4")
        assert "save.x" in q
        assert "save" not in q

    def test_get_list(self) -> None:
        q = QueryParams(b"tag=python&tag=rust&q=hello")
        assert q.get_list("tag") == ["python", "rust"]
        assert q.get_list("missing") == []

    def test_immutable(self) -> None:
        q = QueryParams(b"a=1")
        with pytest.raises(AttributeError):
            q._data = {}  # type: ignore[misc]

    def test_implements_protocol(self) -> None:
        assert isinstance(QueryParams(b""), MultiValueMapping)


class TestParameters:
    def test_copies_input(self) -> None:
        source = {"a": ["1"]}
        params = Parameters(source)
        source["a"].append("2")
        assert params.get_list("a") == ["1"]

    def test_repr(self) -> None:
        assert repr(Parameters({"a": ["1"]})) == "Parameters({'a': '1'})"


class TestRequestParameters:
    def test_merge_query_first(self) -> None:
        query = QueryParams(b"page=1&q=term")
        form = FormData({"q": ["form"], "save": ["Save"]})
        merged = RequestParameters.merge(query, form)
        assert merged["q"] == "term"
        assert merged.get_list("q") == ["term", "form"]
        assert merged["save"] == "Save"
        assert list(merged) == ["page", "q", "save"]

    def test_merge_plain_mapping(self) -> None:
        merged = RequestParameters.merge({"a": "1"}, QueryParams(b"a=2"))
        assert merged.get_list("a") == ["1", "2"]

    def test_merge_nothing(self) -> None:
        assert len(RequestParameters.merge()) == 0

    def test_implements_protocol(self) -> None:
        assert isinstance(RequestParameters(), MultiValueMapping)
