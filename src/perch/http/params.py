"""Immutable request parameters — query string, form body, and both merged.

All three implement ``Mapping[str, str]`` and the ``MultiValueMapping``
protocol over the same ``name -> [values]`` storage. A parameter that
was submitted with an empty value is still present: ``"save" in params``
is true for ``?save=``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from urllib.parse import parse_qs

from perch._internal.multimap import MultiValueMapping


class Parameters(Mapping[str, str]):
    """Read-only multi-valued parameters.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key (checkboxes, multi-selects).
    """

    __slots__ = ("_data",)

    _data: dict[str, list[str]]

    def __init__(self, data: Mapping[str, Iterable[str]] | None = None) -> None:
        copied = {name: list(values) for name, values in (data or {}).items()}
        object.__setattr__(self, "_data", copied)

    def __setattr__(self, name: str, value: object) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> str:
        values = self._data[key]
        if not values:
            raise KeyError(key)
        return values[0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self.get(k)!r}" for k in self)
        return f"{type(self).__name__}({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))


class QueryParams(Parameters):
    """Parameters parsed from a raw query string.

    Attributes:
        _raw: Raw query string bytes, kept for ``Request.url``.
    """

    __slots__ = ("_raw",)

    _raw: bytes

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_qs(query_string.decode("latin-1"), keep_blank_values=True))
        object.__setattr__(self, "_raw", query_string)


class RequestParameters(Parameters):
    """Query string and form body parameters seen as one mapping.

    Values from the query string come first, then form values, so
    ``get()`` prefers the query string when a name appears in both.
    This is what dispatchers resolve handler methods against.
    """

    __slots__ = ()

    @classmethod
    def merge(cls, *sources: Mapping[str, str]) -> RequestParameters:
        """Combine several parameter mappings, preserving first-seen order."""
        data: dict[str, list[str]] = {}
        for source in sources:
            for name in source:
                data.setdefault(name, []).extend(_values_of(source, name))
        return cls(data)


def _values_of(source: Mapping[str, str], name: str) -> list[str]:
    """All values for *name*, whether or not *source* is multi-valued."""
    if isinstance(source, MultiValueMapping):
        return source.get_list(name)
    return [source[name]]
