"""Form body parsing and action-form binding.

``FormData`` shares ``Parameters`` storage with the query string so the
two can be merged into one ``RequestParameters`` for dispatch.

``form_from()`` binds request parameters to a dataclass: the action
form. No validation beyond type coercion for
``str``, ``int``, ``float``, and ``bool``.

Multipart bodies are parsed with ``python-multipart``.
URL-encoded forms use stdlib ``urllib.parse``.
"""

from collections.abc import Mapping
from dataclasses import MISSING, dataclass
from dataclasses import fields as dc_fields
from typing import Any, get_type_hints
from urllib.parse import parse_qs

from python_multipart.multipart import MultipartParser, parse_options_header

from perch.http.params import Parameters

FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"


@dataclass(frozen=True, slots=True)
class UploadFile:
    """An uploaded file from a multipart form submission.

    The file content is held in memory as bytes.
    """

    filename: str
    content_type: str
    size: int
    content: bytes

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


class FormData(Parameters):
    """Immutable parsed form body.

    String fields behave like any other ``Parameters``; uploaded files
    are kept apart in ``files``::

        form = await request.form()
        title = form["title"]
        attachment = form.files.get("attachment")  # UploadFile or None
    """

    __slots__ = ("_files",)

    _files: dict[str, UploadFile]

    def __init__(
        self,
        data: Mapping[str, list[str]] | None = None,
        files: dict[str, UploadFile] | None = None,
    ) -> None:
        super().__init__(data)
        object.__setattr__(self, "_files", dict(files or {}))

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by field name."""
        return self._files


def is_form_content_type(content_type: str | None) -> bool:
    """True when a body with this Content-Type carries form parameters."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in (FORM_URLENCODED, MULTIPART)


async def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a form body into FormData.

    Supports:
    - ``application/x-www-form-urlencoded`` (stdlib)
    - ``multipart/form-data`` (``python-multipart``)

    Raises:
        ValueError: If content type is not a supported form encoding.
    """
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == FORM_URLENCODED:
        return FormData(parse_qs(body.decode("utf-8"), keep_blank_values=True))
    if media_type == MULTIPART:
        return _parse_multipart(body, content_type)
    msg = f"Unsupported form content type: {content_type!r}"
    raise ValueError(msg)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    """Parse multipart form data using python-multipart."""
    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    files: dict[str, UploadFile] = {}

    # Per-part state, reset by on_part_begin
    part: dict[str, Any] = {}

    def on_part_begin() -> None:
        part.clear()
        part.update(headers={}, data=bytearray(), name=None, filename=None, pending="")

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        part["data"].extend(chunk[start:end])

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        part["pending"] = chunk[start:end].decode("latin-1").lower()

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        value = chunk[start:end].decode("latin-1")
        part["headers"][part["pending"]] = value
        if part["pending"] == "content-disposition":
            _, params = parse_options_header(value.encode("latin-1"))
            if (name := params.get(b"name")) is not None:
                part["name"] = name.decode("utf-8")
            if (filename := params.get(b"filename")) is not None:
                part["filename"] = filename.decode("utf-8")

    def on_part_end() -> None:
        name = part.get("name")
        if name is None:
            return
        content = bytes(part["data"])
        if part["filename"] is not None:
            files[name] = UploadFile(
                filename=part["filename"],
                content_type=part["headers"].get("content-type", "application/octet-stream"),
                size=len(content),
                content=content,
            )
        else:
            data.setdefault(name, []).append(content.decode("utf-8", errors="replace"))

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()

    return FormData(data, files)


# -- Action form binding --


class FormBindingError(Exception):
    """Raised when request parameters cannot be bound to a dataclass.

    Attributes:
        errors: Dict mapping field names to lists of error messages.
    """

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        names = ", ".join(sorted(errors))
        super().__init__(f"Form binding failed for: {names}")


# Type coercion map for bind_form()
_COERCIONS: dict[type, Any] = {
    str: lambda v: v.strip(),
    int: int,
    float: float,
    bool: lambda v: v.lower() in ("true", "1", "yes", "on"),
}


def bind_form[T](params: Mapping[str, str], datacls: type[T]) -> T:
    """Bind a parameter mapping to a dataclass instance.

    Fields with defaults are optional; fields without defaults are
    required. String fields are stripped of whitespace. Parameters
    without a matching field (submit buttons, for instance) are ignored.

    Raises:
        FormBindingError: If required fields are missing or coercion fails.
    """
    hints = get_type_hints(datacls)
    errors: dict[str, list[str]] = {}
    values: dict[str, Any] = {}

    for f in dc_fields(datacls):  # type: ignore[arg-type]
        raw = params.get(f.name)

        if raw is None:
            if f.default is not MISSING:
                values[f.name] = f.default
            elif f.default_factory is not MISSING:
                values[f.name] = f.default_factory()
            else:
                errors.setdefault(f.name, []).append(f"{f.name} is required.")
            continue

        base_type = _unwrap_optional(hints.get(f.name, str))
        coerce = _COERCIONS.get(base_type, base_type)
        try:
            values[f.name] = coerce(raw)
        except (ValueError, TypeError):
            errors.setdefault(f.name, []).append(
                f"Invalid value for {f.name}: expected {base_type.__name__}."
            )

    if errors:
        raise FormBindingError(errors)

    return datacls(**values)


async def form_from[T](request: Any, datacls: type[T]) -> T:
    """Bind the request's merged parameters to a dataclass instance.

    Usage::

        @dataclass(frozen=True, slots=True)
        class SubscriptionForm:
            host: str
            port: int = 993

        form = await form_from(request, SubscriptionForm)

    Args:
        request: A perch Request (anything with an async ``.parameters()``).
        datacls: A dataclass class to bind into.
    """
    params = await request.parameters()
    return bind_form(params, datacls)


def _unwrap_optional(hint: Any) -> type:
    """Extract the base type from ``X | None`` or plain ``X``."""
    import types

    if isinstance(hint, types.UnionType):
        args = [a for a in hint.__args__ if a is not type(None)]
        if args:
            return args[0]
    return hint if isinstance(hint, type) else str
